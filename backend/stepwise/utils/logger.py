import logging
import os

_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, _level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# SDK 的逐请求日志默认压到 WARNING，需要排查时设置 SDK_LOG_LEVEL=DEBUG
_sdk_level = os.getenv("SDK_LOG_LEVEL", "WARNING").upper()
for _name in ("openai", "httpx", "httpcore"):
    logging.getLogger(_name).setLevel(getattr(logging, _sdk_level, logging.WARNING))

log = logging.getLogger("stepwise")
