from . import access_key, exceptions, models
from .access_key import AccessKeyGenerator
from .identification import Classification, IdentificationValidator, IdKind, classify
from .models import DocumentKind, Scope
from .sequence import DocumentSequencer
from .stores import InMemoryCounterStore, SqlCounterStore

__all__ = [
    'access_key',
    'exceptions',
    'models',
    'AccessKeyGenerator',
    'Classification',
    'IdentificationValidator',
    'IdKind',
    'classify',
    'DocumentKind',
    'Scope',
    'DocumentSequencer',
    'InMemoryCounterStore',
    'SqlCounterStore',
]
