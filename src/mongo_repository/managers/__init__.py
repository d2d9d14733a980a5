from mongo_repository.managers.logging_manager import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
