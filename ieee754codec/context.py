#
# Rounding-mode control, exception flags and IEEE-754 signals
#

import logging
import threading
from contextlib import contextmanager
from enum import IntEnum, IntFlag

__all__ = ('Context', 'DefaultContext', 'get_context', 'set_context',
           'set_rounding_mode', 'get_rounding_mode', 'rounding_mode',
           'Flags', 'Compare', 'HandlerKind', 'RoundingModeError',
           'IEEEError', 'Invalid', 'SignallingNaNOperand', 'InvalidComparison',
           'InvalidLogBIntegral', 'DivisionByZero', 'Inexact', 'Overflow', 'Underflow',
           'UnderflowExact', 'UnderflowInexact',
           'ROUND_CEILING', 'ROUND_FLOOR', 'ROUND_DOWN', 'ROUND_HALF_EVEN', 'ROUND_HALF_UP',
           'ROUNDING_MODES')

logger = logging.getLogger(__name__)


# Rounding directions
ROUND_CEILING   = 'ROUND_CEILING'       # roundTowardPositive
ROUND_FLOOR     = 'ROUND_FLOOR'         # roundTowardNegative
ROUND_DOWN      = 'ROUND_DOWN'          # roundTowardZero
ROUND_HALF_EVEN = 'ROUND_HALF_EVEN'     # roundTiesToEven
ROUND_HALF_UP   = 'ROUND_HALF_UP'       # roundTiesToAway; round_to_integral only

# The rounding-direction attributes a context can be set to
ROUNDING_MODES = (ROUND_HALF_EVEN, ROUND_FLOOR, ROUND_CEILING, ROUND_DOWN)


# Four-way result of the compare() operation.
class Compare(IntEnum):
    LESS_THAN = 0
    EQUAL = 1
    GREATER_THAN = 2
    UNORDERED = 3


# Operation status flags.
class Flags(IntFlag):
    INVALID     = 0x01
    DIV_BY_ZERO = 0x02
    OVERFLOW    = 0x04
    UNDERFLOW   = 0x08
    INEXACT     = 0x10


class RoundingModeError(ValueError):
    '''Raised when asked to set a rounding mode that is not a rounding-direction
    attribute.'''


#
# Signals.  An operation that meets an IEEE-754 exception builds the matching IEEEError with
# the result default handling would deliver, and returns whatever signal() returns.
#

class IEEEError(ArithmeticError):
    '''Base class of the exceptions operations signal.  The arguments are

         IEEEError(op_tuple, result)

    where op_tuple holds the operation's name followed by its operands, and result is the
    value default exception handling delivers.
    '''

    # The status flag default handling raises; none for exact underflow
    flag_to_raise = 0

    @property
    def op_tuple(self):
        return self.args[0]

    @property
    def default_result(self):
        return self.args[1]

    def signal(self, context=None):
        '''Handle the exception as the context's handler for its class directs.  Return the
        operation's result, or raise self if the handler kind is RAISE.'''
        context = context or get_context()
        kind, handler = context.handler(type(self))

        if self.flag_to_raise and kind != HandlerKind.NO_FLAG:
            context.raise_exception(self.flag_to_raise)
            if kind == HandlerKind.RECORD_EXCEPTION:
                context.exceptions.append(self)

        if kind == HandlerKind.RAISE:
            logger.debug('trapped %s in %s', type(self).__name__, self.op_tuple[0])
            raise self
        if kind == HandlerKind.SUBSTITUTE_VALUE:
            return handler(self, context)
        return self.default_result


class _AlsoInexact:
    '''Mixin for signals that are always accompanied by Inexact.'''

    def signal(self, context=None):
        return Inexact(self.op_tuple, super().signal(context)).signal(context)


class Invalid(IEEEError):
    '''An operation has no usefully definable result.'''

    flag_to_raise = Flags.INVALID


class SignallingNaNOperand(Invalid):
    '''A signalling NaN was an operand.'''


class InvalidComparison(Invalid):
    '''A signalling comparison had a NaN operand.'''


class InvalidLogBIntegral(Invalid):
    '''logb_integral() of a zero, an infinity or a NaN.'''


class DivisionByZero(IEEEError, ZeroDivisionError):
    '''Finite operands gave an exactly infinite result.'''

    flag_to_raise = Flags.DIV_BY_ZERO


class Inexact(IEEEError):
    '''The rounded result differs from the exact one.'''

    flag_to_raise = Flags.INEXACT


class Overflow(_AlsoInexact, IEEEError):
    '''The rounded result's magnitude exceeds the format's largest finite number.'''

    flag_to_raise = Flags.OVERFLOW


class Underflow(IEEEError):
    '''The result is tiny: non-zero and smaller in magnitude than any normal number.'''


class UnderflowExact(Underflow):
    '''A tiny exact result.  Default handling raises no flag.'''


class UnderflowInexact(_AlsoInexact, Underflow):
    '''A tiny inexact result.'''

    flag_to_raise = Flags.UNDERFLOW


class HandlerKind(IntEnum):
    '''How a context handles a signal class.'''

    # Deliver the default result and raise the flag
    DEFAULT = 0
    # Deliver the default result and leave the flag alone
    NO_FLAG = 1
    # As DEFAULT, also appending the exception to context.exceptions when a flag is raised
    RECORD_EXCEPTION = 2
    # Raise the flag and deliver handler(exception, context) instead of the default result
    SUBSTITUTE_VALUE = 3
    # Raise the flag and the exception
    RAISE = 4

    def requires_handler(self):
        return self == HandlerKind.SUBSTITUTE_VALUE


class Context:
    '''The execution context for operations.  Carries the rounding mode, exception flags,
    whether tininess is detected before or after rounding, and alternate handlers.

    The flags are shared state: every read and write goes through a lock, so several
    threads may raise and clear them on one context.  Concurrent writers are not ordered
    with respect to each other.
    '''

    __slots__ = ('_rounding', '_flags', '_lock', 'tininess_after', 'handlers', 'exceptions')

    def __init__(self, *, rounding=ROUND_HALF_EVEN, flags=0, tininess_after=True):
        '''rounding is one of ROUNDING_MODES and controls the rounding of inexact results.
        flags represents the initially raised flags.  tininess_after indicates if
        tininess is detected before or after rounding.
        '''
        self._lock = threading.Lock()
        self._rounding = None
        self._flags = Flags(flags)
        self.set_rounding_mode(rounding)
        self.tininess_after = tininess_after
        self.handlers = {}
        self.exceptions = []

    def copy(self):
        '''Return an independent copy of the context, with its own lock.'''
        result = Context(rounding=self.rounding, flags=self.flags,
                         tininess_after=self.tininess_after)
        result.handlers = dict(self.handlers)
        result.exceptions = list(self.exceptions)
        return result

    @property
    def rounding(self):
        return self._rounding

    @rounding.setter
    def rounding(self, mode):
        self.set_rounding_mode(mode)

    def set_rounding_mode(self, mode):
        '''Set the rounding-direction attribute.  Raises RoundingModeError if mode is not one
        of ROUNDING_MODES.'''
        if mode not in ROUNDING_MODES:
            raise RoundingModeError(f'unsupported rounding mode: {mode!r}')
        logger.debug('rounding mode %s -> %s', self._rounding, mode)
        self._rounding = mode

    def get_rounding_mode(self):
        return self._rounding

    @contextmanager
    def rounding_mode(self, mode):
        '''Run the body of a with-statement under the given rounding mode, restoring the
        previous one on exit.'''
        saved = self._rounding
        self.set_rounding_mode(mode)
        try:
            yield self
        finally:
            self._rounding = saved

    @property
    def flags(self):
        with self._lock:
            return self._flags

    @flags.setter
    def flags(self, flags):
        with self._lock:
            self._flags = Flags(flags)

    def raise_exception(self, flag):
        '''Raise the given flag(s).'''
        with self._lock:
            self._flags |= flag

    def test_exception(self, flag):
        '''Return True if any of the given flags is raised.'''
        with self._lock:
            return bool(self._flags & flag)

    def clear_exception(self, flag):
        '''Lower the given flag(s).'''
        with self._lock:
            self._flags &= ~flag

    def clear_all(self):
        with self._lock:
            self._flags = Flags(0)

    def any_raised(self):
        return bool(self.flags)

    def raised_flags(self):
        '''Return the raised flags as a list, in declaration order.'''
        flags = self.flags
        return [flag for flag in Flags if flags & flag]

    def set_handler(self, exc_classes, kind, handler=None):
        '''Handle the signal class, or each of a tuple or list of them, and their subclasses
        as kind directs.  handler is required for SUBSTITUTE_VALUE and refused otherwise.'''
        if isinstance(exc_classes, (tuple, list)):
            classes = tuple(exc_classes)
        else:
            classes = (exc_classes, )
        for exc_class in classes:
            if not (isinstance(exc_class, type) and issubclass(exc_class, IEEEError)):
                raise TypeError(f'{exc_class!r} is not a subclass of IEEEError')
        if not isinstance(kind, HandlerKind):
            raise TypeError(f'kind must be a HandlerKind, not {kind!r}')
        if kind.requires_handler() and handler is None:
            raise ValueError(f'{kind.name} requires a handler')
        if handler is not None and not kind.requires_handler():
            raise ValueError(f'{kind.name} does not take a handler')
        self.handlers.update((exc_class, (kind, handler)) for exc_class in classes)

    def handler(self, exc_class):
        '''Return the (kind, handler) pair for a signal class: that set for the class or its
        nearest base, else default handling.'''
        if not issubclass(exc_class, IEEEError):
            raise TypeError('exc_class must be a subclass of IEEEError')
        return next((self.handlers[cls] for cls in exc_class.__mro__ if cls in self.handlers),
                    (HandlerKind.DEFAULT, None))

    def __repr__(self):
        return (f'<Context rounding={self.rounding} flags={self.flags!r} '
                f'tininess_after={self.tininess_after}>')


#
# The process-wide context, used by operations not given one explicitly.
#

DefaultContext = Context()
_current_context = DefaultContext


def get_context():
    '''Return the process-wide context.  It is shared by all threads.'''
    return _current_context


def set_context(context):
    '''Replace the process-wide context with context (not a copy of it).'''
    global _current_context
    if not isinstance(context, Context):
        raise TypeError('context must be a Context instance')
    _current_context = context


def set_rounding_mode(mode, context=None):
    (context or get_context()).set_rounding_mode(mode)


def get_rounding_mode(context=None):
    return (context or get_context()).get_rounding_mode()


def rounding_mode(mode, context=None):
    '''Context manager running its body with the given rounding mode.'''
    return (context or get_context()).rounding_mode(mode)
