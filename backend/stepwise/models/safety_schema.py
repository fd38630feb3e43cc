"""
内容安全策略模型
---------------------------------
功能：
- 定义危害类别 `HarmCategory` 与拦截阈值 `HarmBlockThreshold` 两个枚举；
- `SafetySetting` 为单条策略记录（类别 -> 阈值），由 `settings.py` 组装为列表；
- `to_payload()` 将策略列表转换为模型客户端可直接透传的 JSON 结构。
"""

from enum import Enum
from typing import Dict, List, Sequence

from pydantic import BaseModel


class HarmCategory(str, Enum):
    HATE_SPEECH = "HARM_CATEGORY_HATE_SPEECH"
    DANGEROUS_CONTENT = "HARM_CATEGORY_DANGEROUS_CONTENT"
    HARASSMENT = "HARM_CATEGORY_HARASSMENT"
    SEXUALLY_EXPLICIT = "HARM_CATEGORY_SEXUALLY_EXPLICIT"


class HarmBlockThreshold(str, Enum):
    BLOCK_NONE = "BLOCK_NONE"
    BLOCK_ONLY_HIGH = "BLOCK_ONLY_HIGH"
    BLOCK_MEDIUM_AND_ABOVE = "BLOCK_MEDIUM_AND_ABOVE"
    BLOCK_LOW_AND_ABOVE = "BLOCK_LOW_AND_ABOVE"


class SafetySetting(BaseModel):
    """单条安全策略"""
    category: HarmCategory
    threshold: HarmBlockThreshold


def to_payload(settings: Sequence[SafetySetting]) -> List[Dict[str, str]]:
    """转换为 `[{"category": ..., "threshold": ...}]`，供 `extra_body` 使用。"""
    return [s.model_dump(mode="json") for s in settings]
