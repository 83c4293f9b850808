"""
구조화된 로깅

한 줄에 JSON 객체 하나. 요청 ID와 인증된 사용자 ID는 contextvar로 전달되어
요청 중에 남기는 모든 로그에 자동으로 붙습니다.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from expense_tracker.core.config import settings

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

# LogRecord 기본 속성 (extra로 취급하지 않음)
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

LOG_FILES = (
    ("expense_tracker.log", logging.INFO),
    ("error.log", logging.ERROR),
)


def _request_context() -> Dict[str, str]:
    context = {}
    for key, var in (("request_id", request_id_var), ("user_id", user_id_var)):
        value = var.get()
        if value:
            context[key] = value
    return context


class StructuredFormatter(logging.Formatter):
    """JSON 로그 포매터"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            **_request_context(),
        }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        extra = {
            key: value for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith('_')
        }
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging():
    """
    루트 로거 설정

    debug 모드에서는 콘솔에 사람이 읽는 형식, 그 외에는 JSON.
    log_dir가 비어 있으면 파일 로그를 남기지 않습니다.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    if settings.debug:
        console_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
    else:
        console_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(console_handler)

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        for filename, level in LOG_FILES:
            file_handler = logging.FileHandler(log_dir / filename, encoding='utf-8')
            file_handler.setLevel(level)
            file_handler.setFormatter(StructuredFormatter())
            root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_request_context(request_id: str):
    request_id_var.set(request_id)


def set_request_user(user_id: str):
    """인증된 사용자를 현재 요청 컨텍스트에 기록"""
    user_id_var.set(user_id)


def clear_request_context():
    request_id_var.set(None)
    user_id_var.set(None)


def log_api_call(
    logger: logging.Logger,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    **extra
):
    """요청 한 건의 접근 로그 (5xx는 ERROR, 4xx는 WARNING)"""
    if status_code >= 500:
        level = logging.ERROR
    elif status_code >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO

    logger.log(
        level,
        f"{method} {path} - {status_code}",
        extra={
            "event_type": "api_call",
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            **extra
        }
    )


def log_friendship_event(
    logger: logging.Logger,
    event: str,
    friendship_id: str,
    actor_id: str,
    status: str,
    **extra
):
    """
    친구 관계 상태 변경 로그

    Args:
        event: request, accept, reject
        friendship_id: 대상 친구 관계 ID
        actor_id: 요청자(request) 또는 응답자(accept/reject)
        status: 변경 후 상태
    """
    logger.info(
        f"Friendship {event}: {friendship_id} -> {status}",
        extra={
            "event_type": "friendship",
            "event": event,
            "friendship_id": friendship_id,
            "actor_id": actor_id,
            "status": status,
            **extra
        }
    )


def log_authentication_event(
    logger: logging.Logger,
    event: str,
    user_id: Optional[str] = None,
    identifier: Optional[str] = None,
    success: bool = True
):
    """로그인/회원가입 결과 로그"""
    logger.log(
        logging.INFO if success else logging.WARNING,
        f"Auth {event} - {'Success' if success else 'Failed'}",
        extra={
            "event_type": "authentication",
            "event": event,
            "auth_user_id": user_id,
            "identifier": identifier,
            "success": success,
        }
    )


def log_security_event(
    logger: logging.Logger,
    event: str,
    ip_address: Optional[str] = None,
    **extra
):
    logger.warning(
        f"Security {event}",
        extra={
            "event_type": "security",
            "event": event,
            "ip_address": ip_address,
            **extra
        }
    )
