import logging
import contextvars

# Request ID of the HTTP call being served, visible to worker threads started by it
request_id_context = contextvars.ContextVar('request_id', default=None)


class RequestAwareLogger:
    """
    Thin wrapper around ``logging.Logger`` that stamps each record with the
    current request ID.

    The ID comes from an explicit ``request_id=`` keyword when given,
    otherwise from ``request_id_context``. Records logged outside of a
    request carry no ID and are rendered as ``no-request-id`` by the
    formatter in ``app.logging_config``.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.name = name

    def _log_with_context(self, level: int, msg: str, *args, **kwargs):
        request_id = kwargs.pop('request_id', None) or request_id_context.get()

        if request_id:
            extra = kwargs.get('extra', {})
            extra['request_id'] = request_id
            kwargs['extra'] = extra

        self.logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._log_with_context(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log_with_context(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log_with_context(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log_with_context(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        self._log_with_context(logging.ERROR, msg, *args, **kwargs, exc_info=True)


def get_logger(name: str) -> RequestAwareLogger:
    """
    Get a request-aware logger for the specified name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        RequestAwareLogger: A logger that automatically includes request context
    """
    return RequestAwareLogger(name)


def set_request_context(request_id: str):
    """Bind ``request_id`` to the current context for subsequent log calls."""
    request_id_context.set(request_id)


def clear_request_context():
    """Clear the current request context."""
    request_id_context.set(None)
