from __future__ import annotations
import logging
import sys
from loguru import logger

# ---- stdlib logging → loguru 인터셉트 ----
class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())

def _hook_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # 라이브러리 로거는 레벨만 조정
    for noisy in ("jsonschema", "hypothesis"):
        l = logging.getLogger(noisy)
        l.handlers = [InterceptHandler()]
        l.propagate = False

# ---- 개발 콘솔 포맷(사람 친화, extra 미노출) ----
DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{extra[name]}</cyan> | "
    "<cyan>{file}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

def setup_logging_dev(log_level: str = "INFO", service_name: str = "BorderWX") -> None:
    """
    개발 콘솔 전용 loguru 초기화.
    - 콘솔 컬러 출력
    - stdlib logging 흡수
    """
    logger.remove()  # 기본 sink 제거
    logger.configure(extra={"name": "borderwx", "service": service_name})
    logger.add(
        sink=sys.stderr,
        format=DEV_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=False,
        level=log_level.upper(),
        enqueue=False,
    )
    _hook_stdlib_logging()

def setup_logging_json(log_level: str = "INFO", service_name: str = "BorderWX") -> None:
    """
    배치/서버 환경용 JSON 한 줄 로그 초기화.
    bind()로 붙인 컨텍스트는 record.extra 로 직렬화된다.
    """
    logger.remove()
    logger.configure(extra={"name": "borderwx", "service": service_name})
    logger.add(
        sink=sys.stdout,
        serialize=True,
        level=log_level.upper(),
        enqueue=False,
    )
    _hook_stdlib_logging()

def get_logger(name: str = "borderwx", **ctx):
    """선택적으로 컨텍스트를 바인딩한 logger 반환."""
    return logger.bind(name=name, **ctx)

def with_context(**ctx):
    """컨텍스트 매니저로 일시 컨텍스트 부여."""
    return logger.contextualize(**ctx)

def setup_logging(log_level: str = "INFO", *, json_output: bool = False, service_name: str = "BorderWX") -> None:
    """콘솔/JSON 로깅 중 하나를 초기화합니다."""
    if json_output:
        setup_logging_json(log_level, service_name)
    else:
        setup_logging_dev(log_level, service_name)

def configure_from_settings(settings) -> None:
    """Settings.observability 값으로 로깅을 초기화합니다."""
    obs = settings.observability
    setup_logging(obs.log_level, json_output=obs.json_logs, service_name=obs.service_name)
