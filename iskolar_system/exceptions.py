"""
Errors raised by the portal's domain operations.

Input validation uses Django's own ValidationError; the classes here cover the
remaining failure kinds a view has to translate into a response.
"""


class PortalError(Exception):
    """Base class for domain errors"""
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class RecordNotFound(PortalError):
    """A referenced application, release, semester or document does not exist"""
    status_code = 404

    def __init__(self, table, record_id):
        super().__init__(f'{table} {record_id} not found')
        self.table = table
        self.record_id = record_id


class InvalidTransition(PortalError):
    """An application status change the review workflow does not allow"""
    status_code = 409

    def __init__(self, current, requested):
        super().__init__(f'Cannot change application status from {current} to {requested}')
        self.current = current
        self.requested = requested


class ExternalCallFailed(PortalError):
    """The data store rejected or failed a call; nothing was applied"""
    status_code = 500
