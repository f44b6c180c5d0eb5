"""Session establishment client for the VolleyManager referee backend."""

from .api.transport import HttpResponse, RequestsTransport, Transport, TransportError, TransportTimeout
from .auth.authenticator import SessionAuthenticator
from .auth.cancellation import AttemptCancelled, AttemptTimedOut, CancellationToken
from .auth.models import ErrorKind, LoginFailure, LoginFormFields, LoginOutcome, LoginSuccess
from .auth.session_sink import JsonFileSessionSink, MemorySessionSink, SessionSink

__all__ = [
    'AttemptCancelled',
    'AttemptTimedOut',
    'CancellationToken',
    'ErrorKind',
    'HttpResponse',
    'JsonFileSessionSink',
    'LoginFailure',
    'LoginFormFields',
    'LoginOutcome',
    'LoginSuccess',
    'MemorySessionSink',
    'RequestsTransport',
    'SessionAuthenticator',
    'SessionSink',
    'Transport',
    'TransportError',
    'TransportTimeout',
]
