"""
统一返回模型（ApiResponse）
---------------------------------
功能：
- 定义后端接口统一返回结构：code、message、data。
- 提供 `ok` / `error` / `notice` 工厂方法，以及 `from_action` 将网关结果转换为返回体：
  * 网关返回 `ActionError` -> code=1，message 为错误文案，data 为 `{"error": 文案}`；
  * 其他 pydantic 模型 -> code=0，data 为 camelCase 别名序列化结果。
- `notice` 用于用户输入类提示（空画板、非图片文件等），code=400，不会到达网关。
"""

from typing import Any, Optional

from pydantic import BaseModel

from .solution_schema import ActionError


NOTICE_CODE = 400


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Optional[Any] = None

    @classmethod
    def ok(cls, data: Any | None = None, message: str = "success") -> "ApiResponse":
        return cls(code=0, message=message, data=data)

    @classmethod
    def error(cls, message: str = "error", code: int = 1, data: Any | None = None) -> "ApiResponse":
        return cls(code=code, message=message, data=data)

    @classmethod
    def notice(cls, message: str) -> "ApiResponse":
        return cls(code=NOTICE_CODE, message=message, data=None)

    @classmethod
    def from_action(cls, result: BaseModel) -> "ApiResponse":
        if isinstance(result, ActionError):
            return cls.error(result.error, data=result.model_dump())
        return cls.ok(result.model_dump(by_alias=True, exclude_none=True))
