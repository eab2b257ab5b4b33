"""
Structlog 日志配置模块

Driver events and stdlib records (stripe SDK, httpx, uvicorn, sqlalchemy)
share one processor chain. Stripe API keys are masked before rendering.
"""
import json
import logging
import re
from typing import Any, List

import structlog
from structlog.contextvars import merge_contextvars
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, add_log_level
from structlog.stdlib import ProcessorFormatter

from core.config import settings


_STRIPE_KEY = re.compile(r"\b((?:sk|pk|rk)_(?:test|live))_[0-9A-Za-z]+")

# The SDK logs every request line at INFO
_NOISY_LOGGERS = {"stripe": logging.WARNING, "httpx": logging.WARNING, "httpcore": logging.WARNING}


def _mask(value: Any) -> Any:
    if isinstance(value, str):
        return _STRIPE_KEY.sub(r"\1_***", value)
    return value


def redact_stripe_keys(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Mask anything shaped like a Stripe API key in string values."""
    return {key: _mask(value) for key, value in event_dict.items()}


def get_renderer() -> Any:
    """Console in DEBUG, JSON otherwise.

    structlog passes default/sort_keys to the serializer, so accept them.
    """
    if settings.DEBUG:
        return ConsoleRenderer(colors=True)

    def _dumps(obj, default=None, **kwargs):
        return json.dumps(obj, ensure_ascii=False, default=default, **kwargs)
    return JSONRenderer(serializer=_dumps)


def configure_logging() -> None:
    """配置 structlog 并桥接标准库 logging 到同一处理链。"""
    shared_pre_chain: List[Any] = [
        merge_contextvars,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_stripe_keys,
    ]

    structlog.configure(
        processors=[
            *shared_pre_chain,
            ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = ProcessorFormatter(
        foreign_pre_chain=shared_pre_chain,
        processors=[
            ProcessorFormatter.remove_processors_meta,
            get_renderer(),
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    if not settings.DEBUG:
        for name, level in _NOISY_LOGGERS.items():
            logging.getLogger(name).setLevel(level)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """获取 structlog logger 实例。"""
    return structlog.get_logger(name)


# 初始化配置
configure_logging()
