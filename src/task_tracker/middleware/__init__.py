from task_tracker.middleware.metrics import MetricsMiddleware


__all__ = ["MetricsMiddleware"]
