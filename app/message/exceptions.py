# =============================================================================
# File: app/message/exceptions.py
# Description: Message domain exceptions
# =============================================================================

from app.common.exceptions.exceptions import ResourceNotFoundError, ValidationError


class MessageNotFoundError(ResourceNotFoundError):
    """Message not found for the requesting tenant"""
    def __init__(self, message_id: str):
        super().__init__(f'Message with ID "{message_id}" not found')
        self.message_id = message_id


class InvalidSortFieldError(ValidationError):
    """Conversation listing requested an unsupported sort field"""
    def __init__(self, sort_field: str, allowed: tuple):
        super().__init__(f"sortField must be one of: {', '.join(allowed)} (got '{sort_field}')")
        self.sort_field = sort_field


class EmptySearchTermError(ValidationError):
    """Search was requested without a query term"""
    def __init__(self):
        super().__init__("q should not be empty")
