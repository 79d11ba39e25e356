#
# Status flags, signals and the per-thread arithmetic context.
#

import copy
import logging
import threading
from enum import IntFlag, IntEnum


__all__ = ('Context', 'DefaultContext', 'get_context', 'set_context', 'local_context',
           'Flags', 'HandlerKind',
           'NumError', 'ParseError', 'InvalidRadix', 'EmptyDigits', 'InvalidDigit',
           'RangeError', 'DomainError', 'DivisionByZero')


logger = logging.getLogger(__name__)


# Operation status flags.
class Flags(IntFlag):
    PARSE = 0x01
    RANGE = 0x02


#
# Signals
#

class NumError(ArithmeticError):
    '''All recoverable conditions signalled by this package subclass from this.

    NumError expects two arguments:

         def __init__(self, op_tuple, result):

    op_tuple is a tuple of the operation name and operands causing the signal.  result
    is the value that default handling should deliver, usually None.
    '''

    flag_to_raise = 'Nope! Fix your bug.'

    @property
    def op_tuple(self):
        return self.args[0]

    @property
    def default_result(self):
        return self.args[1]

    def signal(self, context=None):
        '''Call to signal the condition.  Handles it according to default or alternative
        handling as specified in the context.'''
        context = context or get_context()
        kind, handler = context.handler(self.__class__)
        result = self.default_result
        logger.debug('%s signalled by %s', self.__class__.__name__, self.op_tuple[0])

        if kind != HandlerKind.NO_FLAG:
            context.flags |= self.flag_to_raise
            if kind == HandlerKind.RECORD_EXCEPTION:
                context.exceptions.append(self)

        if kind == HandlerKind.RAISE:
            raise self
        if kind == HandlerKind.SUBSTITUTE_VALUE:
            result = handler(self, context)

        return result


class ParseError(NumError, ValueError):
    '''Base class of string and digit parsing failures.'''

    flag_to_raise = Flags.PARSE


class InvalidRadix(ParseError):
    '''The requested radix is outside the supported range.'''


class EmptyDigits(ParseError):
    '''There were no digits to parse.'''


class InvalidDigit(ParseError):
    '''A digit is not valid for the requested radix.'''


class RangeError(NumError, OverflowError):
    '''Signalled when a narrowing conversion cannot represent the value.'''

    flag_to_raise = Flags.RANGE


#
# Fatal errors.  These indicate misuse and are always raised.
#

class DomainError(ValueError):
    '''An operation was given operands outside its mathematical domain.'''


class DivisionByZero(DomainError, ZeroDivisionError):
    '''A division or remainder operation with a zero divisor.'''


# Alternate handling

class HandlerKind(IntEnum):
    '''Indicates how a signalled condition should be handled.'''
    # Return the default result and raise the associated flag
    DEFAULT = 0

    # Return the default result without raising the associated flag
    NO_FLAG = 1

    # Default handling, and also append the exception to the context's exceptions list
    RECORD_EXCEPTION = 2

    # Default handling but substitute a value for the default result.  A handler must be
    # provided with signature
    #
    #    def handler(exception, context):
    #
    # The value returned by the handler will become the operation's result.
    SUBSTITUTE_VALUE = 3

    # Raise the exception immediately
    RAISE = 4

    def requires_handler(self):
        return self == HandlerKind.SUBSTITUTE_VALUE


class Context:
    '''The execution context for operations.  Carries the status flags and the handlers
    of signalled conditions.'''

    __slots__ = ('flags', 'handlers', 'exceptions')

    def __init__(self, *, flags=0):
        self.flags = flags
        self.handlers = {}
        self.exceptions = []

    def copy(self):
        '''Return a (deep) copy of the context.'''
        # A deep copy is needed because handlers and exceptions are mutable containers
        return copy.deepcopy(self)

    def set_handler(self, exc_classes, kind, handler=None):
        classes = (exc_classes, ) if not isinstance(exc_classes, (tuple, list)) else exc_classes
        if not all(issubclass(exc_class, NumError) for exc_class in classes):
            raise TypeError('all exception classes must be subclasses of NumError')
        if not isinstance(kind, HandlerKind):
            raise TypeError('kind must be a HandlerKind instance')
        if (handler is not None) ^ kind.requires_handler():
            if handler is None:
                raise ValueError(f'handler not given for kind {kind!r}')
            else:
                raise ValueError(f'handler given for kind {kind!r}')
        pair = (kind, handler)
        for exc_class in classes:
            self.handlers[exc_class] = pair

    def handler(self, exc_class):
        '''Return a (handler_kind, callback) pair for a signal class.'''
        if not issubclass(exc_class, NumError):
            raise TypeError('exc_class must be a subclass of NumError')

        for cls in exc_class.mro():
            handler = self.handlers.get(cls)
            if handler:
                return handler

        return HandlerKind.DEFAULT, None

    def __repr__(self):
        return f'<Context flags={self.flags!r} handlers={len(self.handlers)}>'


#
# Exported functions
#

DefaultContext = Context()
tls = threading.local()


def get_context():
    try:
        return tls.context
    except AttributeError:
        tls.context = DefaultContext.copy()
        return tls.context


def set_context(context):
    '''Sets the current thread's context to context (not a copy of it).'''
    tls.context = context


class LocalContext:
    '''A context manager that will set the current context for the active thread to a copy of
    context on entry to the with-statement and restore the previous context on exit.  If
    no context is specified a copy of the current context is taken instead.
    '''

    def __init__(self, context=None):
        self.saved_context = None
        self.context_to_set = context

    def __enter__(self):
        self.saved_context = get_context()
        context = (self.context_to_set or self.saved_context).copy()
        set_context(context)
        return context

    def __exit__(self, etype, value, traceback):
        set_context(self.saved_context)


local_context = LocalContext
