"""Domain exceptions raised by the service layer.

Routes let these propagate; the app-level error handler renders them with the same
JSON shape as HTTP errors. None of them is fatal: the failing action is aborted and
shared state is left untouched.
"""
from __future__ import annotations


class OrderboardError(Exception):
    status = 500
    title = 'Internal Server Error'

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(OrderboardError):
    status = 404
    title = 'Not Found'


class ValidationError(OrderboardError):
    status = 400
    title = 'Bad Request'


class PermissionDenied(OrderboardError):
    status = 403
    title = 'Forbidden'


class AttachmentError(OrderboardError):
    """File could not be read or encoded; the order keeps its previous attachments."""
    status = 400
    title = 'Bad Request'


__all__ = ['OrderboardError', 'NotFoundError', 'ValidationError', 'PermissionDenied', 'AttachmentError']
