from app.utils.base.enums import ErrorKind
from app.utils.base.errors import ApiError, register_error_handlers
