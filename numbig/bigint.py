#
# Arbitrary-precision signed integers: a sign paired with an unsigned magnitude.
#

import math
from collections import namedtuple
from enum import IntEnum
from functools import wraps

import attr

from .biguint import BigUint, BITS
from .context import DomainError, RangeError


__all__ = ('BigInt', 'Sign', 'IntegerFormat', 'ExtendedGcd',
           'Int8', 'Int16', 'Int32', 'Int64', 'Int128',
           'UInt8', 'UInt16', 'UInt32', 'UInt64', 'UInt128')


# Operation names
OP_TO_INT = 'to_int'
OP_TO_BIGUINT = 'to_biguint'
OP_FROM_FLOAT = 'from_float'


class Sign(IntEnum):
    '''The sign of a BigInt.  Ordered so that NEGATIVE < ZERO < POSITIVE.'''
    NEGATIVE = -1
    ZERO = 0
    POSITIVE = 1

    def __neg__(self):
        return Sign(-int(self))

    def __mul__(self, other):
        if isinstance(other, Sign):
            return Sign(int(self) * int(other))
        return int(self) * other

    __rmul__ = __mul__


def sign_of(value):
    if value > 0:
        return Sign.POSITIVE
    if value < 0:
        return Sign.NEGATIVE
    return Sign.ZERO


ExtendedGcd = namedtuple('ExtendedGcd', 'gcd x y')


@attr.s(slots=True, frozen=True)
class IntegerFormat:
    '''A two's-complement fixed-width integer type, either signed or unsigned.  Used for
    mixed-width arithmetic and checked narrowing conversions.'''
    width = attr.ib()
    is_signed = attr.ib(converter=bool)

    @width.validator
    def _check_width(self, attribute, value):
        if not isinstance(value, int):
            raise TypeError('width must be an integer')
        if value < 1:
            raise ValueError('width must be at least 1')

    @property
    def min_int(self):
        return -(1 << (self.width - 1)) if self.is_signed else 0

    @property
    def max_int(self):
        if self.is_signed:
            return (1 << (self.width - 1)) - 1
        return (1 << self.width) - 1

    def contains(self, value):
        return self.min_int <= value <= self.max_int

    def uabs(self, value):
        '''Return a (sign, magnitude) pair for an in-range scalar of this format.'''
        if not isinstance(value, int):
            raise TypeError('value must be an integer')
        if not self.contains(value):
            raise ValueError(f'{value:,d} is out of range for {self!r}')
        return sign_of(value), abs(value)


Int8 = IntegerFormat(8, True)
Int16 = IntegerFormat(16, True)
Int32 = IntegerFormat(32, True)
Int64 = IntegerFormat(64, True)
Int128 = IntegerFormat(128, True)
UInt8 = IntegerFormat(8, False)
UInt16 = IntegerFormat(16, False)
UInt32 = IntegerFormat(32, False)
UInt64 = IntegerFormat(64, False)
UInt128 = IntegerFormat(128, False)


#
# Two's-complement emulation over sign-magnitude limbs
#
# Each helper takes the limb list a of the left operand, which it overwrites with the limbs
# of the result magnitude, and the limbs b of the right operand.  A negative operand's limbs
# are negated on the fly, with its carry chain started at one; a negative result is negated
# back with a further carry chain.  Limbs beyond the shorter operand are combined with its
# sign extension: zero for a positive operand, all ones for a negative one.
#

def negate_carry(digit, carry, bits=BITS):
    '''Return a (limb, carry) pair: the limb of the two's complement of digit given the
    incoming carry, and the outgoing carry.'''
    mask = (1 << bits) - 1
    carry += ~digit & mask
    return carry & mask, carry >> bits


def bitand_pos_neg(a, b):
    # Result is positive and no longer than a
    carry_b = 1
    for i, bi in enumerate(b[:len(a)]):
        twos_b, carry_b = negate_carry(bi, carry_b)
        a[i] &= twos_b
    assert len(b) > len(a) or carry_b == 0


def bitand_neg_pos(a, b):
    # Result is positive and no longer than b
    carry_a = 1
    for i, bi in enumerate(b[:len(a)]):
        twos_a, carry_a = negate_carry(a[i], carry_a)
        a[i] = twos_a & bi
    assert len(a) > len(b) or carry_a == 0
    if len(a) > len(b):
        del a[len(b):]
    else:
        a.extend(b[len(a):])


def bitand_neg_neg(a, b):
    # Result is negative and no longer than max(len(a), len(b)) + 1
    carry_a = carry_b = carry_and = 1
    for i, bi in enumerate(b[:len(a)]):
        twos_a, carry_a = negate_carry(a[i], carry_a)
        twos_b, carry_b = negate_carry(bi, carry_b)
        a[i], carry_and = negate_carry(twos_a & twos_b, carry_and)
    assert len(a) > len(b) or carry_a == 0
    assert len(b) > len(a) or carry_b == 0
    if len(a) > len(b):
        for i in range(len(b), len(a)):
            twos_a, carry_a = negate_carry(a[i], carry_a)
            a[i], carry_and = negate_carry(twos_a, carry_and)
        assert carry_a == 0
    else:
        for bi in b[len(a):]:
            twos_b, carry_b = negate_carry(bi, carry_b)
            digit, carry_and = negate_carry(twos_b, carry_and)
            a.append(digit)
        assert carry_b == 0
    if carry_and:
        a.append(1)


def bitor_pos_neg(a, b):
    # Result is negative and no longer than b
    carry_b = carry_or = 1
    for i, bi in enumerate(b[:len(a)]):
        twos_b, carry_b = negate_carry(bi, carry_b)
        a[i], carry_or = negate_carry(a[i] | twos_b, carry_or)
    assert len(b) > len(a) or carry_b == 0
    if len(a) > len(b):
        del a[len(b):]
    else:
        for bi in b[len(a):]:
            twos_b, carry_b = negate_carry(bi, carry_b)
            digit, carry_or = negate_carry(twos_b, carry_or)
            a.append(digit)
        assert carry_b == 0
    # A carry would need twos_b == 0
    assert carry_or == 0


def bitor_neg_pos(a, b):
    # Result is negative and no longer than a
    carry_a = carry_or = 1
    for i, bi in enumerate(b[:len(a)]):
        twos_a, carry_a = negate_carry(a[i], carry_a)
        a[i], carry_or = negate_carry(twos_a | bi, carry_or)
    assert len(a) > len(b) or carry_a == 0
    if len(a) > len(b):
        for i in range(len(b), len(a)):
            twos_a, carry_a = negate_carry(a[i], carry_a)
            a[i], carry_or = negate_carry(twos_a, carry_or)
        assert carry_a == 0
    # A carry would need twos_a == 0
    assert carry_or == 0


def bitor_neg_neg(a, b):
    # Result is negative and no longer than min(len(a), len(b))
    carry_a = carry_b = carry_or = 1
    for i, bi in enumerate(b[:len(a)]):
        twos_a, carry_a = negate_carry(a[i], carry_a)
        twos_b, carry_b = negate_carry(bi, carry_b)
        a[i], carry_or = negate_carry(twos_a | twos_b, carry_or)
    assert len(a) > len(b) or carry_a == 0
    assert len(b) > len(a) or carry_b == 0
    if len(a) > len(b):
        del a[len(b):]
    assert carry_or == 0


def bitxor_pos_neg(a, b):
    # Result is negative and no longer than max(len(a), len(b)) + 1
    mask = (1 << BITS) - 1
    carry_b = carry_xor = 1
    for i, bi in enumerate(b[:len(a)]):
        twos_b, carry_b = negate_carry(bi, carry_b)
        a[i], carry_xor = negate_carry(a[i] ^ twos_b, carry_xor)
    assert len(b) > len(a) or carry_b == 0
    if len(a) > len(b):
        for i in range(len(b), len(a)):
            a[i], carry_xor = negate_carry(a[i] ^ mask, carry_xor)
    else:
        for bi in b[len(a):]:
            twos_b, carry_b = negate_carry(bi, carry_b)
            digit, carry_xor = negate_carry(twos_b, carry_xor)
            a.append(digit)
        assert carry_b == 0
    if carry_xor:
        a.append(1)


def bitxor_neg_pos(a, b):
    # Result is negative and no longer than max(len(a), len(b)) + 1
    mask = (1 << BITS) - 1
    carry_a = carry_xor = 1
    for i, bi in enumerate(b[:len(a)]):
        twos_a, carry_a = negate_carry(a[i], carry_a)
        a[i], carry_xor = negate_carry(twos_a ^ bi, carry_xor)
    assert len(a) > len(b) or carry_a == 0
    if len(a) > len(b):
        for i in range(len(b), len(a)):
            twos_a, carry_a = negate_carry(a[i], carry_a)
            a[i], carry_xor = negate_carry(twos_a, carry_xor)
        assert carry_a == 0
    else:
        for bi in b[len(a):]:
            digit, carry_xor = negate_carry(mask ^ bi, carry_xor)
            a.append(digit)
    if carry_xor:
        a.append(1)


def bitxor_neg_neg(a, b):
    # Result is positive and no longer than max(len(a), len(b))
    mask = (1 << BITS) - 1
    carry_a = carry_b = 1
    for i, bi in enumerate(b[:len(a)]):
        twos_a, carry_a = negate_carry(a[i], carry_a)
        twos_b, carry_b = negate_carry(bi, carry_b)
        a[i] = twos_a ^ twos_b
    assert len(a) > len(b) or carry_a == 0
    assert len(b) > len(a) or carry_b == 0
    if len(a) > len(b):
        for i in range(len(b), len(a)):
            twos_a, carry_a = negate_carry(a[i], carry_a)
            a[i] = twos_a ^ mask
        assert carry_a == 0
    else:
        for bi in b[len(a):]:
            twos_b, carry_b = negate_carry(bi, carry_b)
            a.append(mask ^ twos_b)
        assert carry_b == 0


# (helper, result sign) keyed by the (left, right) operand signs, for mixed-sign operands
# and negative pairs.  Pairs involving zero, or both positive, are handled directly.
BITAND_HELPERS = {
    (Sign.POSITIVE, Sign.NEGATIVE): (bitand_pos_neg, Sign.POSITIVE),
    (Sign.NEGATIVE, Sign.POSITIVE): (bitand_neg_pos, Sign.POSITIVE),
    (Sign.NEGATIVE, Sign.NEGATIVE): (bitand_neg_neg, Sign.NEGATIVE),
}

BITOR_HELPERS = {
    (Sign.POSITIVE, Sign.NEGATIVE): (bitor_pos_neg, Sign.NEGATIVE),
    (Sign.NEGATIVE, Sign.POSITIVE): (bitor_neg_pos, Sign.NEGATIVE),
    (Sign.NEGATIVE, Sign.NEGATIVE): (bitor_neg_neg, Sign.NEGATIVE),
}

BITXOR_HELPERS = {
    (Sign.POSITIVE, Sign.NEGATIVE): (bitxor_pos_neg, Sign.NEGATIVE),
    (Sign.NEGATIVE, Sign.POSITIVE): (bitxor_neg_pos, Sign.NEGATIVE),
    (Sign.NEGATIVE, Sign.NEGATIVE): (bitxor_neg_neg, Sign.POSITIVE),
}


def twos_complement(buf, indices):
    '''Replace the bytes of buf with their two's complement, visiting them from least to most
    significant in the order given by indices.'''
    carry = 1
    for index in indices:
        buf[index], carry = negate_carry(buf[index], carry, 8)


def twos_complement_le(buf):
    twos_complement(buf, range(len(buf)))


def twos_complement_be(buf):
    twos_complement(buf, reversed(range(len(buf))))


#
# Operand conversion
#

def convert_for_arith(value):
    '''Return value as a BigInt if it is a BigInt or a Python integer, otherwise None.'''
    if isinstance(value, BigInt):
        return value
    if isinstance(value, int):
        return BigInt.from_int(value)
    return None


def as_bigint(value):
    result = convert_for_arith(value)
    if result is None:
        raise TypeError(f'cannot convert {type(value).__name__} to a BigInt')
    return result


def shift_count(value):
    if isinstance(value, BigInt):
        value = int(value)
    elif not isinstance(value, int):
        return None
    if value < 0:
        raise DomainError('negative shift count')
    return value


def binary_operator(method):
    '''Wrap a method of two BigInts as a Python operator accepting BigInts and ints.'''
    @wraps(method)
    def operator(self, other):
        other = convert_for_arith(other)
        if other is None:
            return NotImplemented
        return method(self, other)
    return operator


def reflected_operator(method):
    @wraps(method)
    def operator(self, other):
        other = convert_for_arith(other)
        if other is None:
            return NotImplemented
        return method(other, self)
    return operator


class BigInt:
    '''A signed integer of unbounded size.

    Held as a sign and a BigUint magnitude.  The sign is ZERO if and only if the magnitude
    is zero.  BigInts are treated as immutable: every operation returns a new value and
    never mutates its operands.
    '''

    __slots__ = ('sign', 'data')

    def __init__(self, value=0):
        if isinstance(value, BigInt):
            self.sign, self.data = value.sign, value.data.copy()
        elif isinstance(value, int):
            self.sign, self.data = sign_of(value), BigUint.from_int(abs(value))
        else:
            raise TypeError(f'cannot convert {type(value).__name__} to a BigInt')

    @classmethod
    def from_biguint(cls, sign, data):
        '''Return a BigInt from a sign and a magnitude, which it takes ownership of.  A ZERO
        sign forces a zero magnitude, and a zero magnitude forces a ZERO sign.'''
        if not isinstance(data, BigUint):
            raise TypeError('data must be a BigUint')
        sign = Sign(sign)
        if sign == Sign.ZERO:
            data = BigUint()
        elif data.is_zero():
            sign = Sign.ZERO
        result = cls.__new__(cls)
        result.sign = sign
        result.data = data
        return result

    @classmethod
    def from_int(cls, value, fmt=None):
        '''Return a BigInt equal to a Python integer.  If fmt is given it is the IntegerFormat
        the value is taken from, and the value must lie in its range.'''
        if fmt is None:
            if not isinstance(value, int):
                raise TypeError('from_int requires an integer')
            sign, magnitude = sign_of(value), abs(value)
        else:
            sign, magnitude = fmt.uabs(value)
        return cls.from_biguint(sign, BigUint.from_int(magnitude))

    @classmethod
    def from_u32_digits(cls, sign, digits):
        return cls.from_biguint(sign, BigUint(digits))

    def copy(self):
        '''Return a deep copy.'''
        return BigInt.from_biguint(self.sign, self.data.copy())

    __copy__ = copy

    def __deepcopy__(self, memo):
        return self.copy()

    def normalize(self):
        '''Normalize the magnitude and set the sign to ZERO if it is zero.'''
        self.data.normalize()
        if self.data.is_zero():
            self.sign = Sign.ZERO

    def is_canonical(self):
        return (self.sign != Sign.ZERO) ^ self.data.is_zero()

    ##
    ## Queries
    ##

    def is_zero(self):
        return self.sign == Sign.ZERO

    def is_one(self):
        return self.sign == Sign.POSITIVE and self.data.is_one()

    def is_positive(self):
        return self.sign == Sign.POSITIVE

    def is_negative(self):
        return self.sign == Sign.NEGATIVE

    def is_even(self):
        return self.data.is_even()

    def is_odd(self):
        return self.data.is_odd()

    def signum(self):
        '''Return -1, 0 or 1 as a BigInt.'''
        return BigInt(int(self.sign))

    def magnitude(self):
        return self.data.copy()

    def into_parts(self):
        '''Return a (sign, magnitude) pair.'''
        return self.sign, self.data.copy()

    def bits(self):
        '''Return the number of bits needed to represent the magnitude.'''
        return self.data.bits()

    def trailing_zeros(self):
        '''Return the number of least-significant zero bits, or None for zero.  Identical for
        a value and its negation.'''
        return self.data.trailing_zeros()

    def cmp(self, other):
        '''Return -1, 0 or 1 as self is less than, equal to or greater than other.'''
        assert self.is_canonical() and other.is_canonical()
        if self.sign != other.sign:
            return -1 if self.sign < other.sign else 1
        if self.sign == Sign.POSITIVE:
            return self.data.cmp(other.data)
        if self.sign == Sign.NEGATIVE:
            return other.data.cmp(self.data)
        return 0

    ##
    ## Arithmetic
    ##

    def add(self, other):
        other = as_bigint(other)
        if other.sign == Sign.ZERO:
            return self
        if self.sign == Sign.ZERO:
            return other
        if self.sign == other.sign:
            return BigInt.from_biguint(self.sign, self.data + other.data)
        # Opposite signs: subtract the smaller magnitude from the larger
        order = self.data.cmp(other.data)
        if order < 0:
            return BigInt.from_biguint(other.sign, other.data - self.data)
        if order > 0:
            return BigInt.from_biguint(self.sign, self.data - other.data)
        return BigInt()

    def sub(self, other):
        other = as_bigint(other)
        if other.sign == Sign.ZERO:
            return self
        if self.sign == Sign.ZERO:
            return -other
        if self.sign != other.sign:
            return BigInt.from_biguint(self.sign, self.data + other.data)
        order = self.data.cmp(other.data)
        if order < 0:
            return BigInt.from_biguint(-self.sign, other.data - self.data)
        if order > 0:
            return BigInt.from_biguint(self.sign, self.data - other.data)
        return BigInt()

    def mul(self, other):
        other = as_bigint(other)
        return BigInt.from_biguint(self.sign * other.sign, self.data * other.data)

    def abs_sub(self, other):
        '''Return self - other if positive, otherwise zero.'''
        other = as_bigint(other)
        if self.cmp(other) <= 0:
            return BigInt()
        return self.sub(other)

    def div_rem(self, other):
        '''Return the (quotient, remainder) pair of truncating division.  The quotient rounds
        toward zero and the remainder takes the sign of the dividend.'''
        other = as_bigint(other)
        quotient, remainder = self.data.div_rem(other.data)
        quotient = BigInt.from_biguint(self.sign * other.sign, quotient)
        return quotient, BigInt.from_biguint(self.sign, remainder)

    def div_trunc(self, other):
        return self.div_rem(other)[0]

    def rem_trunc(self, other):
        return self.div_rem(other)[1]

    def checked_div(self, other):
        '''Truncating division returning None if other is zero.'''
        other = as_bigint(other)
        if other.is_zero():
            return None
        return self.div_trunc(other)

    def div_mod_floor(self, other):
        '''Return the (quotient, modulus) pair of floor division.  The quotient rounds toward
        negative infinity and the modulus takes the sign of the divisor.'''
        other = as_bigint(other)
        d_ui, m_ui = self.data.div_mod_floor(other.data)
        d = BigInt.from_biguint(Sign.POSITIVE, d_ui)
        m = BigInt.from_biguint(Sign.POSITIVE, m_ui)
        if self.sign * other.sign >= 0:
            return (d, -m) if other.is_negative() else (d, m)
        if m.is_zero():
            return -d, m
        if other.is_negative():
            return -d - 1, m + other
        return -d - 1, other - m

    def div_floor(self, other):
        '''Return the quotient rounded toward negative infinity.'''
        other = as_bigint(other)
        d_ui, m_ui = self.data.div_mod_floor(other.data)
        d = BigInt.from_biguint(Sign.POSITIVE, d_ui)
        if self.sign * other.sign >= 0:
            return d
        if m_ui.is_zero():
            return -d
        return -d - 1

    def mod_floor(self, other):
        '''Return the floored modulus, which has the sign of other.'''
        other = as_bigint(other)
        m = BigInt.from_biguint(other.sign, self.data.mod_floor(other.data))
        if self.sign * other.sign >= 0 or m.is_zero():
            return m
        return other - m

    def div_ceil(self, other):
        '''Return the quotient rounded toward positive infinity.'''
        other = as_bigint(other)
        d_ui, m_ui = self.data.div_mod_floor(other.data)
        d = BigInt.from_biguint(Sign.POSITIVE, d_ui)
        if self.sign * other.sign < 0:
            return -d
        if m_ui.is_zero():
            return d
        return d + 1

    def is_multiple_of(self, other):
        return self.data.is_multiple_of(as_bigint(other).data)

    def next_multiple_of(self, other):
        '''Return the smallest multiple of other not less than self, or for negative other
        the largest not greater than self.'''
        other = as_bigint(other)
        m = self.mod_floor(other)
        if m.is_zero():
            return self
        return self + (other - m)

    def prev_multiple_of(self, other):
        '''Return the largest multiple of other not greater than self, or for negative other
        the smallest not less than self.'''
        return self - self.mod_floor(other)

    def pow(self, exponent):
        '''Return self raised to a non-negative exponent.'''
        exponent = int(as_bigint(exponent))
        if exponent < 0:
            raise DomainError('negative exponentiation is not supported')
        if exponent == 0:
            sign = Sign.POSITIVE
        elif self.sign != Sign.NEGATIVE or exponent & 1:
            sign = self.sign
        else:
            sign = -self.sign
        return BigInt.from_biguint(sign, self.data.pow(exponent))

    def modpow(self, exponent, modulus):
        '''Return self ** exponent mod modulus.  A non-zero result takes the sign of the
        modulus, as with mod_floor.'''
        exponent, modulus = as_bigint(exponent), as_bigint(modulus)
        if exponent.is_negative():
            raise DomainError('negative exponentiation is not supported')
        if modulus.is_zero():
            raise DomainError('attempt to calculate with zero modulus')

        result = self.data.modpow(exponent.data, modulus.data)
        if result.is_zero():
            return BigInt()

        negated = self.is_negative() and exponent.is_odd()
        if negated != modulus.is_negative():
            result = modulus.data - result
        return BigInt.from_biguint(modulus.sign, result)

    def sqrt(self):
        '''Return the square root truncated toward zero.'''
        if self.is_negative():
            raise DomainError('square root is imaginary')
        return BigInt.from_biguint(self.sign, self.data.sqrt())

    def cbrt(self):
        '''Return the cube root truncated toward zero; it has the sign of self.'''
        return BigInt.from_biguint(self.sign, self.data.cbrt())

    def nth_root(self, n):
        '''Return the n-th root truncated toward zero.  Negative values only have roots of odd
        degree.'''
        if self.is_negative() and n % 2 == 0:
            raise DomainError(f'root of degree {n} is imaginary')
        return BigInt.from_biguint(self.sign, self.data.nth_root(n))

    ##
    ## Number theory
    ##

    def gcd(self, other):
        '''Return the greatest common divisor, which is never negative.'''
        return BigInt.from_biguint(Sign.POSITIVE, self.data.gcd(as_bigint(other).data))

    def lcm(self, other):
        '''Return the least common multiple, which is never negative.'''
        return BigInt.from_biguint(Sign.POSITIVE, self.data.lcm(as_bigint(other).data))

    def gcd_lcm(self, other):
        gcd, lcm = self.data.gcd_lcm(as_bigint(other).data)
        return BigInt.from_biguint(Sign.POSITIVE, gcd), BigInt.from_biguint(Sign.POSITIVE, lcm)

    def extended_gcd(self, other):
        '''Return an ExtendedGcd (gcd, x, y) with gcd == x * self + y * other and gcd never
        negative.'''
        other = as_bigint(other)
        zero, one = BigInt(), BigInt(1)
        s = (zero, one)
        t = (one, zero)
        r = (other, self)

        while not r[0].is_zero():
            q = r[1].div_trunc(r[0])
            r = (r[1] - q * r[0], r[0])
            s = (s[1] - q * s[0], s[0])
            t = (t[1] - q * t[0], t[0])

        if r[1].is_negative():
            return ExtendedGcd(-r[1], -s[1], -t[1])
        return ExtendedGcd(r[1], s[1], t[1])

    def extended_gcd_lcm(self, other):
        '''Return an (ExtendedGcd, lcm) pair.'''
        other = as_bigint(other)
        egcd = self.extended_gcd(other)
        if egcd.gcd.is_zero():
            return egcd, BigInt()
        lcm = self.data // egcd.gcd.data * other.data
        return egcd, BigInt.from_biguint(Sign.POSITIVE, lcm)

    ##
    ## Bitwise operations with two's-complement semantics
    ##

    def shl(self, shift):
        shift = shift_count(shift)
        if shift is None:
            raise TypeError('shift count must be an integer')
        return BigInt.from_biguint(self.sign, self.data << shift)

    def shr(self, shift):
        '''Arithmetic right shift, rounding toward negative infinity.'''
        shift = shift_count(shift)
        if shift is None:
            raise TypeError('shift count must be an integer')
        # A negative value rounds away from zero if any one bits are shifted out
        round_down = self.is_negative() and self.data.trailing_zeros() < shift
        data = self.data >> shift
        if round_down:
            data.increment()
        return BigInt.from_biguint(self.sign, data)

    def bitand(self, other):
        other = as_bigint(other)
        if self.sign == Sign.ZERO or other.sign == Sign.ZERO:
            return BigInt()
        if self.sign == other.sign == Sign.POSITIVE:
            return BigInt.from_biguint(Sign.POSITIVE, self.data & other.data)
        return self._bitwise(other, BITAND_HELPERS)

    def bitor(self, other):
        other = as_bigint(other)
        if other.sign == Sign.ZERO:
            return self
        if self.sign == Sign.ZERO:
            return other
        if self.sign == other.sign == Sign.POSITIVE:
            return BigInt.from_biguint(Sign.POSITIVE, self.data | other.data)
        return self._bitwise(other, BITOR_HELPERS)

    def bitxor(self, other):
        other = as_bigint(other)
        if other.sign == Sign.ZERO:
            return self
        if self.sign == Sign.ZERO:
            return other
        if self.sign == other.sign == Sign.POSITIVE:
            return BigInt.from_biguint(Sign.POSITIVE, self.data ^ other.data)
        return self._bitwise(other, BITXOR_HELPERS)

    def _bitwise(self, other, helpers):
        helper, sign = helpers[self.sign, other.sign]
        data = self.data.copy()
        helper(data.data, other.data.data)
        data.normalize()
        return BigInt.from_biguint(sign, data)

    def __invert__(self):
        '''Return -self - 1, computed by stepping the magnitude in place.'''
        data = self.data.copy()
        if self.sign == Sign.NEGATIVE:
            data.decrement()
            return BigInt.from_biguint(Sign.POSITIVE, data)
        data.increment()
        return BigInt.from_biguint(Sign.NEGATIVE, data)

    ##
    ## Conversions
    ##

    def to_int(self, fmt, context=None):
        '''Return the value as a Python integer if it is representable in the IntegerFormat
        fmt, otherwise signal RangeError.'''
        if not isinstance(fmt, IntegerFormat):
            raise TypeError('fmt must be an IntegerFormat')
        if self.data.bits() <= fmt.width:
            value = int(self)
            if fmt.contains(value):
                return value
        return RangeError((OP_TO_INT, self, fmt), None).signal(context)

    def to_biguint(self, context=None):
        '''Return the magnitude if the value is not negative, otherwise signal RangeError.'''
        if self.is_negative():
            return RangeError((OP_TO_BIGUINT, self), None).signal(context)
        return self.data.copy()

    def to_float(self):
        '''Return the nearest float.  Values beyond the float range become infinities.'''
        try:
            return float(int(self))
        except OverflowError:
            return math.copysign(math.inf, self.sign)

    @classmethod
    def from_float(cls, value, context=None):
        '''Return the float value truncated toward zero.  Signals RangeError if value is an
        infinity or a NaN.'''
        value = float(value)
        if not math.isfinite(value):
            return RangeError((OP_FROM_FLOAT, value), None).signal(context)
        return cls.from_int(int(value))

    ##
    ## Codecs
    ##

    @classmethod
    def from_bytes_be(cls, sign, data):
        return cls.from_biguint(sign, BigUint.from_bytes_be(data))

    @classmethod
    def from_bytes_le(cls, sign, data):
        return cls.from_biguint(sign, BigUint.from_bytes_le(data))

    def to_bytes_be(self):
        '''Return a (sign, bytes) pair, the bytes being the big-endian magnitude.'''
        return self.sign, self.data.to_bytes_be()

    def to_bytes_le(self):
        return self.sign, self.data.to_bytes_le()

    def to_u32_digits(self):
        return self.sign, self.data.to_u32_digits()

    @classmethod
    def from_signed_bytes_be(cls, data):
        '''Decode big-endian two's-complement bytes.  Empty input is zero.'''
        buf = bytearray(data)
        if not buf:
            return cls()
        if buf[0] > 0x7f:
            twos_complement_be(buf)
            return cls.from_biguint(Sign.NEGATIVE, BigUint.from_bytes_be(buf))
        return cls.from_biguint(Sign.POSITIVE, BigUint.from_bytes_be(buf))

    @classmethod
    def from_signed_bytes_le(cls, data):
        '''Decode little-endian two's-complement bytes.  Empty input is zero.'''
        buf = bytearray(data)
        if not buf:
            return cls()
        if buf[-1] > 0x7f:
            twos_complement_le(buf)
            return cls.from_biguint(Sign.NEGATIVE, BigUint.from_bytes_le(buf))
        return cls.from_biguint(Sign.POSITIVE, BigUint.from_bytes_le(buf))

    def to_signed_bytes_be(self):
        '''Return the minimal big-endian two's-complement encoding.'''
        buf = bytearray(self.data.to_bytes_be())
        if buf[0] > 0x7f and not self._is_most_negative(buf[0], buf[1:]):
            buf.insert(0, 0)
        if self.is_negative():
            twos_complement_be(buf)
        return bytes(buf)

    def to_signed_bytes_le(self):
        '''Return the minimal little-endian two's-complement encoding.'''
        buf = bytearray(self.data.to_bytes_le())
        if buf[-1] > 0x7f and not self._is_most_negative(buf[-1], buf[:-1]):
            buf.append(0)
        if self.is_negative():
            twos_complement_le(buf)
        return bytes(buf)

    def _is_most_negative(self, top, rest):
        # -0x80, -0x8000 and so on already fit without a sign byte
        return self.is_negative() and top == 0x80 and not any(rest)

    @classmethod
    def from_str_radix(cls, string, radix, context=None):
        '''Parse an optionally signed string of digits in the given radix (2 to 36).  Signals a
        ParseError on failure.'''
        if not isinstance(string, str):
            raise TypeError('string must be a str')
        sign = Sign.POSITIVE
        if string.startswith('-'):
            tail = string[1:]
            if not tail.startswith('+'):
                string = tail
            sign = Sign.NEGATIVE
        magnitude = BigUint.from_str_radix(string, radix, context)
        if not isinstance(magnitude, BigUint):
            return magnitude
        return cls.from_biguint(sign, magnitude)

    def to_str_radix(self, radix):
        digits = self.data.to_str_radix(radix)
        return '-' + digits if self.is_negative() else digits

    @classmethod
    def from_radix_be(cls, sign, digits, radix, context=None):
        magnitude = BigUint.from_radix_be(digits, radix, context)
        if not isinstance(magnitude, BigUint):
            return magnitude
        return cls.from_biguint(sign, magnitude)

    @classmethod
    def from_radix_le(cls, sign, digits, radix, context=None):
        magnitude = BigUint.from_radix_le(digits, radix, context)
        if not isinstance(magnitude, BigUint):
            return magnitude
        return cls.from_biguint(sign, magnitude)

    def to_radix_be(self, radix):
        '''Return a (sign, digits) pair, the digits most significant first.'''
        return self.sign, self.data.to_radix_be(radix)

    def to_radix_le(self, radix):
        return self.sign, self.data.to_radix_le(radix)

    ##
    ## Python protocol
    ##

    def __int__(self):
        value = int(self.data)
        return -value if self.sign == Sign.NEGATIVE else value

    __index__ = __int__

    def __float__(self):
        return self.to_float()

    def __bool__(self):
        return self.sign != Sign.ZERO

    def __hash__(self):
        assert self.is_canonical()
        return hash(int(self))

    def __str__(self):
        return self.to_str_radix(10)

    def __repr__(self):
        return f'BigInt({self})'

    def __format__(self, format_spec):
        return format(int(self), format_spec)

    def __neg__(self):
        return BigInt.from_biguint(-self.sign, self.data.copy())

    def __pos__(self):
        return self

    def __abs__(self):
        if self.sign == Sign.NEGATIVE:
            return -self
        return self

    @binary_operator
    def __eq__(self, other):
        return self.cmp(other) == 0

    @binary_operator
    def __ne__(self, other):
        return self.cmp(other) != 0

    @binary_operator
    def __lt__(self, other):
        return self.cmp(other) < 0

    @binary_operator
    def __le__(self, other):
        return self.cmp(other) <= 0

    @binary_operator
    def __gt__(self, other):
        return self.cmp(other) > 0

    @binary_operator
    def __ge__(self, other):
        return self.cmp(other) >= 0

    __add__ = binary_operator(add)
    __radd__ = reflected_operator(add)
    __sub__ = binary_operator(sub)
    __rsub__ = reflected_operator(sub)
    __mul__ = binary_operator(mul)
    __rmul__ = reflected_operator(mul)
    __floordiv__ = binary_operator(div_floor)
    __rfloordiv__ = reflected_operator(div_floor)
    __mod__ = binary_operator(mod_floor)
    __rmod__ = reflected_operator(mod_floor)
    __divmod__ = binary_operator(div_mod_floor)
    __rdivmod__ = reflected_operator(div_mod_floor)
    __and__ = binary_operator(bitand)
    __rand__ = reflected_operator(bitand)
    __or__ = binary_operator(bitor)
    __ror__ = reflected_operator(bitor)
    __xor__ = binary_operator(bitxor)
    __rxor__ = reflected_operator(bitxor)

    def __pow__(self, exponent, modulus=None):
        exponent = convert_for_arith(exponent)
        if exponent is None:
            return NotImplemented
        if modulus is None:
            return self.pow(exponent)
        modulus = convert_for_arith(modulus)
        if modulus is None:
            return NotImplemented
        return self.modpow(exponent, modulus)

    __rpow__ = reflected_operator(pow)

    def __lshift__(self, other):
        if shift_count(other) is None:
            return NotImplemented
        return self.shl(other)

    def __rshift__(self, other):
        if shift_count(other) is None:
            return NotImplemented
        return self.shr(other)

    __rlshift__ = reflected_operator(shl)
    __rrshift__ = reflected_operator(shr)
