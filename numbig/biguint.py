#
# Unsigned arbitrary-precision magnitudes held as little-endian 32-bit limbs.
#

from struct import pack, unpack

import gmpy2

from .context import DomainError, DivisionByZero, EmptyDigits, InvalidDigit, InvalidRadix


__all__ = ('BigUint', 'BITS', 'DIGIT_MAX')


# Limb width in bits.  Each limb holds a value in [0, DIGIT_MAX].
BITS = 32
DIGIT_MAX = (1 << BITS) - 1
DIGIT_BYTES = BITS // 8

# Operation names
OP_FROM_STR_RADIX = 'from_str_radix'
OP_FROM_RADIX_BE = 'from_radix_be'
OP_FROM_RADIX_LE = 'from_radix_le'

# Values of the characters valid as digits in radices up to 36
DIGIT_VALUES = {char: int(char, 36) for char in '0123456789abcdefghijklmnopqrstuvwxyz'}
DIGIT_VALUES.update((char.upper(), value) for char, value in list(DIGIT_VALUES.items()))


def digits_from_int(value):
    '''Return the normalized little-endian limbs of a non-negative integer.'''
    count = (value.bit_length() + BITS - 1) // BITS
    return list(unpack(f'<{count}I', value.to_bytes(count * DIGIT_BYTES, 'little')))


def int_from_digits(digits):
    '''Return the value of a sequence of little-endian limbs.'''
    return int.from_bytes(pack(f'<{len(digits)}I', *digits), 'little')


def int_value(value):
    '''Return the integer value of a BigUint or non-negative int, or None for other types.'''
    if isinstance(value, BigUint):
        return int_from_digits(value.data)
    if isinstance(value, int):
        if value < 0:
            raise ValueError('a magnitude cannot be negative')
        return value
    return None


def shift_count(value):
    if not isinstance(value, int):
        raise TypeError('shift count must be an integer')
    if value < 0:
        raise DomainError('negative shift count')
    return value


class BigUint:
    '''An unsigned integer of unbounded size.

    data is a list of limbs, least significant first, with no trailing zero limbs; the
    value zero is the empty list.  A BigUint owns its list exclusively.  Code that mutates
    the limbs in place must call normalize() when it is done.
    '''

    __slots__ = ('data', )

    def __init__(self, digits=()):
        data = list(digits)
        for digit in data:
            if not isinstance(digit, int):
                raise TypeError('limbs must be integers')
            if not 0 <= digit <= DIGIT_MAX:
                raise ValueError(f'limb {digit:,d} out of range')
        self.data = data
        self.normalize()

    @classmethod
    def from_int(cls, value):
        '''Return the magnitude equal to a non-negative Python integer.'''
        if not isinstance(value, int):
            raise TypeError('from_int requires an integer')
        if value < 0:
            raise ValueError('a magnitude cannot be negative')
        result = cls.__new__(cls)
        result.data = digits_from_int(value)
        return result

    def copy(self):
        '''Return a deep copy.'''
        result = BigUint.__new__(BigUint)
        result.data = self.data.copy()
        return result

    def normalize(self):
        '''Strip trailing zero limbs.'''
        data = self.data
        while data and not data[-1]:
            data.pop()

    ##
    ## Queries
    ##

    def is_zero(self):
        return not self.data

    def is_one(self):
        return self.data == [1]

    def is_even(self):
        return not self.data or not self.data[0] & 1

    def is_odd(self):
        return not self.is_even()

    def bits(self):
        '''Return the number of bits needed to represent the value.'''
        if not self.data:
            return 0
        return (len(self.data) - 1) * BITS + self.data[-1].bit_length()

    def trailing_zeros(self):
        '''Return the number of least-significant zero bits, or None if the value is zero.'''
        for index, digit in enumerate(self.data):
            if digit:
                return index * BITS + (digit & -digit).bit_length() - 1
        return None

    def cmp(self, other):
        '''Return -1, 0 or 1 as self is less than, equal to or greater than other.'''
        lhs, rhs = self.data, other.data
        if len(lhs) != len(rhs):
            return -1 if len(lhs) < len(rhs) else 1
        for x, y in zip(reversed(lhs), reversed(rhs)):
            if x != y:
                return -1 if x < y else 1
        return 0

    ##
    ## In-place operations
    ##

    def increment(self):
        '''Add one in place, growing by a limb if the carry escapes the top limb.'''
        data = self.data
        for index, digit in enumerate(data):
            if digit != DIGIT_MAX:
                data[index] = digit + 1
                return
            data[index] = 0
        data.append(1)

    def decrement(self):
        '''Subtract one in place.'''
        data = self.data
        if not data:
            raise ValueError('cannot decrement a zero magnitude')
        for index, digit in enumerate(data):
            if digit:
                data[index] = digit - 1
                break
            data[index] = DIGIT_MAX
        self.normalize()

    ##
    ## Arithmetic
    ##

    def sub(self, other):
        '''Return self - other.  The caller must ensure other does not exceed self.'''
        value = int(self) - int_value(other)
        if value < 0:
            raise ValueError('magnitude subtraction would underflow')
        return BigUint.from_int(value)

    def div_rem(self, other):
        '''Return the (quotient, remainder) pair of truncating division.'''
        divisor = int_value(other)
        if divisor is None:
            raise TypeError('div_rem requires a BigUint or an integer')
        if not divisor:
            raise DivisionByZero('attempt to divide by zero')
        quotient, remainder = divmod(int(self), divisor)
        return BigUint.from_int(quotient), BigUint.from_int(remainder)

    # For unsigned operands truncating and floor division agree
    div_mod_floor = div_rem

    def mod_floor(self, other):
        return self.div_rem(other)[1]

    def is_multiple_of(self, other):
        '''Return True if self is a multiple of other.  Only zero is a multiple of zero.'''
        if other.is_zero():
            return self.is_zero()
        return self.mod_floor(other).is_zero()

    def pow(self, exponent):
        exponent = int(exponent)
        if exponent < 0:
            raise DomainError('negative exponentiation is not supported')
        return BigUint.from_int(int(self) ** exponent)

    def modpow(self, exponent, modulus):
        '''Return self ** exponent mod modulus.'''
        modulus = int_value(modulus)
        if not modulus:
            raise DomainError('attempt to calculate with zero modulus')
        return BigUint.from_int(int(gmpy2.powmod(int(self), int_value(exponent), modulus)))

    def gcd(self, other):
        return BigUint.from_int(int(gmpy2.gcd(int(self), int_value(other))))

    def lcm(self, other):
        return BigUint.from_int(int(gmpy2.lcm(int(self), int_value(other))))

    def gcd_lcm(self, other):
        gcd = self.gcd(other)
        if gcd.is_zero():
            return gcd, BigUint()
        return gcd, self // gcd * other

    def sqrt(self):
        return BigUint.from_int(int(gmpy2.isqrt(int(self))))

    def cbrt(self):
        return self.nth_root(3)

    def nth_root(self, n):
        '''Return the truncated principal n-th root.'''
        if not isinstance(n, int):
            raise TypeError('root degree must be an integer')
        if n < 1:
            raise DomainError(f'root degree {n} is invalid')
        root, _exact = gmpy2.iroot(int(self), n)
        return BigUint.from_int(int(root))

    ##
    ## Codecs
    ##

    def to_u32_digits(self):
        return self.data.copy()

    def to_bytes_be(self):
        '''Return the big-endian bytes of the magnitude.  Zero is a single zero byte.'''
        return int(self).to_bytes(max(1, (self.bits() + 7) // 8), 'big')

    def to_bytes_le(self):
        '''Return the little-endian bytes of the magnitude.  Zero is a single zero byte.'''
        return int(self).to_bytes(max(1, (self.bits() + 7) // 8), 'little')

    @classmethod
    def from_bytes_be(cls, data):
        return cls.from_int(int.from_bytes(bytes(data), 'big'))

    @classmethod
    def from_bytes_le(cls, data):
        return cls.from_int(int.from_bytes(bytes(data), 'little'))

    def to_str_radix(self, radix):
        '''Return the magnitude as a lower-case string in the given radix (2 to 36).'''
        if not 2 <= radix <= 36:
            raise ValueError('radix must be in the range 2 to 36')
        return gmpy2.digits(int(self), radix)

    @classmethod
    def from_str_radix(cls, string, radix, context=None):
        '''Parse a string of digits in the given radix.  A single leading '+' is permitted and
        underscores after the first digit are ignored.

        Signals InvalidRadix, EmptyDigits or InvalidDigit on failure.
        '''
        op_tuple = (OP_FROM_STR_RADIX, string, radix)
        if not 2 <= radix <= 36:
            return InvalidRadix(op_tuple, None).signal(context)

        if string.startswith('+'):
            tail = string[1:]
            if not tail.startswith('+'):
                string = tail
        if not string:
            return EmptyDigits(op_tuple, None).signal(context)
        # Must lead with a real digit
        if string.startswith('_'):
            return InvalidDigit(op_tuple, None).signal(context)

        for char in string:
            if char != '_' and DIGIT_VALUES.get(char, radix) >= radix:
                return InvalidDigit(op_tuple, None).signal(context)

        return cls.from_int(int(gmpy2.mpz(string.replace('_', ''), radix)))

    def to_radix_le(self, radix):
        '''Return the digits of the magnitude in the given radix (2 to 256), least significant
        first.  Zero is a single zero digit.'''
        if not 2 <= radix <= 256:
            raise ValueError('radix must be in the range 2 to 256')
        if radix <= 36:
            return [DIGIT_VALUES[char] for char in reversed(self.to_str_radix(radix))]

        value = int(self)
        if not value:
            return [0]

        # Divide out the largest power of the radix that fits in a limb, then split each
        # chunk into its digits
        power, big_radix = 1, radix
        while big_radix * radix <= DIGIT_MAX:
            big_radix *= radix
            power += 1

        digits = []
        while value:
            value, chunk = divmod(value, big_radix)
            for _ in range(power):
                chunk, digit = divmod(chunk, radix)
                digits.append(digit)
        while not digits[-1]:
            digits.pop()
        return digits

    def to_radix_be(self, radix):
        digits = self.to_radix_le(radix)
        digits.reverse()
        return digits

    @classmethod
    def from_radix_be(cls, digits, radix, context=None):
        '''Return the magnitude from its digits in the given radix (2 to 256), most significant
        first.  Each digit must be less than the radix.'''
        return cls._from_radix(OP_FROM_RADIX_BE, list(digits), radix, context)

    @classmethod
    def from_radix_le(cls, digits, radix, context=None):
        '''As from_radix_be, but least significant digit first.'''
        digits = list(digits)
        return cls._from_radix((OP_FROM_RADIX_LE, digits, radix), digits[::-1], radix, context)

    @classmethod
    def _from_radix(cls, op_tuple, digits, radix, context):
        if isinstance(op_tuple, str):
            op_tuple = (op_tuple, digits, radix)
        if not 2 <= radix <= 256:
            return InvalidRadix(op_tuple, None).signal(context)
        value = 0
        for digit in digits:
            if not 0 <= digit < radix:
                return InvalidDigit(op_tuple, None).signal(context)
            value = value * radix + digit
        return cls.from_int(value)

    ##
    ## Python protocol
    ##

    def __int__(self):
        return int_from_digits(self.data)

    __index__ = __int__

    def __bool__(self):
        return bool(self.data)

    def __hash__(self):
        return hash(int(self))

    def __eq__(self, other):
        if isinstance(other, BigUint):
            return self.data == other.data
        if isinstance(other, int):
            return int(self) == other
        return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __lt__(self, other):
        if not isinstance(other, BigUint):
            return NotImplemented
        return self.cmp(other) < 0

    def __le__(self, other):
        if not isinstance(other, BigUint):
            return NotImplemented
        return self.cmp(other) <= 0

    def __gt__(self, other):
        if not isinstance(other, BigUint):
            return NotImplemented
        return self.cmp(other) > 0

    def __ge__(self, other):
        if not isinstance(other, BigUint):
            return NotImplemented
        return self.cmp(other) >= 0

    def __add__(self, other):
        other = int_value(other)
        if other is None:
            return NotImplemented
        return BigUint.from_int(int(self) + other)

    __radd__ = __add__

    def __sub__(self, other):
        if int_value(other) is None:
            return NotImplemented
        return self.sub(other)

    def __mul__(self, other):
        other = int_value(other)
        if other is None:
            return NotImplemented
        return BigUint.from_int(int(self) * other)

    __rmul__ = __mul__

    def __floordiv__(self, other):
        if int_value(other) is None:
            return NotImplemented
        return self.div_rem(other)[0]

    def __mod__(self, other):
        if int_value(other) is None:
            return NotImplemented
        return self.div_rem(other)[1]

    def __divmod__(self, other):
        if int_value(other) is None:
            return NotImplemented
        return self.div_rem(other)

    def __lshift__(self, other):
        return BigUint.from_int(int(self) << shift_count(other))

    def __rshift__(self, other):
        return BigUint.from_int(int(self) >> shift_count(other))

    def __and__(self, other):
        other = int_value(other)
        if other is None:
            return NotImplemented
        return BigUint.from_int(int(self) & other)

    __rand__ = __and__

    def __or__(self, other):
        other = int_value(other)
        if other is None:
            return NotImplemented
        return BigUint.from_int(int(self) | other)

    __ror__ = __or__

    def __xor__(self, other):
        other = int_value(other)
        if other is None:
            return NotImplemented
        return BigUint.from_int(int(self) ^ other)

    __rxor__ = __xor__

    def __str__(self):
        return self.to_str_radix(10)

    def __repr__(self):
        return f'BigUint({self})'
