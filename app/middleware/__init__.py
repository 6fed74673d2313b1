from app.middleware.request_log import RequestLogMiddleware
