# size.py
# Python module to represent storage sizes
#
# Copyright (C) 2010  Red Hat, Inc.
#
# This copyrighted material is made available to anyone wishing to use,
# modify, copy, or redistribute it subject to the terms and conditions of
# the GNU General Public License v.2, or (at your option) any later version.
# This program is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY expressed or implied, including the implied warranties of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU General
# Public License for more details.  You should have received a copy of the
# GNU General Public License along with this program; if not, write to the
# Free Software Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA
# 02110-1301, USA.  Any Red Hat trademarks that are incorporated in the
# source code or documentation are not subject to the GNU General Public
# License and may only be used or replicated with the express permission of
# Red Hat, Inc.
#

from bytesize import bytesize

# we just need to make these objects available here
# pylint: disable=unused-import
from bytesize.bytesize import B, KiB, MiB, GiB, TiB, PiB, KB, MB, GB, TB
from bytesize.bytesize import ROUND_UP, ROUND_DOWN, ROUND_HALF_UP

UNLIMITED_STR = "unlimited"


def _unlimited(value):
    return getattr(value, "unlimited", False)


class Size(bytesize.Size):
    """ Common class to represent storage device and filesystem sizes.
        Can handle parsing strings such as 45MB or 6.7GB to initialize
        itself, or can be initialized with a numerical size in bytes.

        Arithmetic involving :data:`UNLIMITED` always yields
        :data:`UNLIMITED`, and an unlimited size compares greater than
        any finite one.
    """
    unlimited = False

    def __abs__(self):
        return Size(bytesize.Size.__abs__(self))

    def __add__(self, other):
        if _unlimited(other):
            return UNLIMITED
        return Size(bytesize.Size.__add__(self, other))

    # needed to make sum() work with Size arguments
    def __radd__(self, other):
        if _unlimited(other):
            return UNLIMITED
        return Size(bytesize.Size.__radd__(self, other))

    def __sub__(self, other):
        if _unlimited(other):
            return UNLIMITED
        return Size(bytesize.Size.__sub__(self, other))

    def __rsub__(self, other):
        if _unlimited(other):
            return UNLIMITED
        return Size(bytesize.Size.__rsub__(self, other))

    def __mul__(self, other):
        return Size(bytesize.Size.__mul__(self, other))
    __rmul__ = __mul__

    def __truediv__(self, other):
        ret = bytesize.Size.__truediv__(self, other)
        if isinstance(ret, bytesize.Size):
            ret = Size(ret)

        return ret

    def __floordiv__(self, other):
        ret = bytesize.Size.__floordiv__(self, other)
        if isinstance(ret, bytesize.Size):
            ret = Size(ret)

        return ret

    def __mod__(self, other):
        return Size(bytesize.Size.__mod__(self, other))

    def __eq__(self, other):
        if _unlimited(other):
            return False
        return bytesize.Size.__eq__(self, other)

    def __ne__(self, other):
        return not self == other

    def __lt__(self, other):
        if _unlimited(other):
            return True
        return bytesize.Size.__lt__(self, other)

    def __le__(self, other):
        if _unlimited(other):
            return True
        return bytesize.Size.__le__(self, other)

    def __gt__(self, other):
        if _unlimited(other):
            return False
        return bytesize.Size.__gt__(self, other)

    def __ge__(self, other):
        if _unlimited(other):
            return False
        return bytesize.Size.__ge__(self, other)

    def __hash__(self):
        return hash(self.get_bytes())

    def __deepcopy__(self, memo_dict):
        return Size(bytesize.Size.__deepcopy__(self, memo_dict))

    # pylint: disable=arguments-differ
    def convert_to(self, spec=None):
        """ Return the size in the units indicated by the specifier.

            :param spec: a units specifier
            :type spec: a units specifier or :class:`Size`
            :returns: a numeric value in the units indicated by the specifier
            :rtype: Decimal
            :raises ValueError: if Size unit specifier is non-positive
        """
        if isinstance(spec, Size):
            if spec == Size(0):
                raise ValueError("cannot convert to 0 size")
            return bytesize.Size.__truediv__(self, spec)
        spec = B if spec is None else spec
        return bytesize.Size.convert_to(self, spec)

    def human_readable(self, min_unit=B, max_places=2, xlate=True):
        """ Return a string representation of this size with appropriate
            size specifier and in the specified number of decimal places.
            Values are always represented using binary not decimal units.

            :param min_unit: the smallest unit the returned representation should use
            :param max_places: number of decimal places to use
            :type max_places: an integer type or NoneType
            :param bool xlate: If True, translate for current locale
            :returns: a representation of the size
            :rtype: str
        """
        if max_places is None:
            max_places = -1
        return bytesize.Size.human_readable(self, min_unit, max_places, xlate)

    # pylint: disable=arguments-differ
    def round_to_nearest(self, size, rounding):
        """ Rounds to nearest unit specified as a named constant or a Size.

            :param size: a size specifier
            :type size: a named constant like KiB, or any non-negative Size
            :keyword rounding: which direction to round
            :type rounding: one of ROUND_UP, ROUND_DOWN, or ROUND_HALF_UP
            :returns: Size rounded to nearest whole specified unit
            :rtype: :class:`Size`

            If size is Size(0), returns Size(0).
        """
        if rounding not in (ROUND_UP, ROUND_DOWN, ROUND_HALF_UP):
            raise ValueError("invalid rounding specifier")

        if isinstance(size, Size):
            if size.get_bytes() == 0:
                return Size(0)
            elif size < Size(0):
                raise ValueError("invalid rounding size: %s" % size)

        return Size(bytesize.Size.round_to_nearest(self, size, rounding))

    def ceil(self, unit):
        """ Round up to a multiple of unit (a :class:`Size`). """
        return self.round_to_nearest(unit, rounding=ROUND_UP)

    def floor(self, unit):
        """ Round down to a multiple of unit (a :class:`Size`). """
        return self.round_to_nearest(unit, rounding=ROUND_DOWN)


class _UnlimitedSize(Size):
    """ The size of something that can grow without bounds. """
    unlimited = True

    def __init__(self):
        super(_UnlimitedSize, self).__init__(0)

    def _absorb(self, other):   # pylint: disable=unused-argument
        return self

    __add__ = __radd__ = __sub__ = __rsub__ = _absorb
    __mul__ = __rmul__ = __abs__ = _absorb

    def __truediv__(self, other):
        if isinstance(other, bytesize.Size):
            raise ValueError("cannot divide an unlimited size by a size")
        return self

    __floordiv__ = __truediv__

    def __eq__(self, other):
        return _unlimited(other)

    def __ne__(self, other):
        return not _unlimited(other)

    def __lt__(self, other):
        return False

    def __le__(self, other):
        return _unlimited(other)

    def __gt__(self, other):
        return not _unlimited(other)

    def __ge__(self, other):
        return True

    def __hash__(self):
        return hash(UNLIMITED_STR)

    def __bool__(self):
        return True

    def __int__(self):
        raise ValueError("an unlimited size has no byte count")

    def __deepcopy__(self, memo_dict):
        return self

    def __copy__(self):
        return self

    def __reduce__(self):
        return (_get_unlimited, ())

    def __str__(self):
        return UNLIMITED_STR

    def __repr__(self):
        return "Size (%s)" % UNLIMITED_STR

    def get_bytes(self):
        raise ValueError("an unlimited size has no byte count")

    def convert_to(self, spec=None):
        raise ValueError("an unlimited size cannot be converted")

    def human_readable(self, min_unit=B, max_places=2, xlate=True):
        return UNLIMITED_STR

    def round_to_nearest(self, size, rounding):
        return self


def _get_unlimited():
    return UNLIMITED


UNLIMITED = _UnlimitedSize()


def parse_size(value):
    """ Create a :class:`Size` from a configuration value.

        :param value: a size, a number of bytes or a string like "10 GiB"
                      or "unlimited"
        :returns: the parsed size or None if value is None
    """
    if value is None or isinstance(value, Size):
        return value
    if isinstance(value, str) and value.strip().lower() == UNLIMITED_STR:
        return UNLIMITED
    return Size(value)


def size_sum(sizes, rounding=None):
    """ Sum a sequence of sizes, optionally rounding each one up first.

        :param sizes: the sizes to add up
        :param rounding: the unit every size is rounded up to
        :type rounding: :class:`Size` or NoneType
        :rtype: :class:`Size`
    """
    total = Size(0)
    for size in sizes:
        if rounding is not None:
            size = size.ceil(rounding)
        total += size
    return total
