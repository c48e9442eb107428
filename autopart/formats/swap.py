# swap.py
# Device format classes for the storage proposal.
#
# Copyright (C) 2009  Red Hat, Inc.
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

from . import DeviceFormat, register_device_format
from ..size import Size

SWAP_MOUNTPOINT = "swap"


class SwapSpace(DeviceFormat):

    """ Swap space """
    _type = "swap"
    _name = None
    _linux_native = True                # for space making

    _max_size = Size("16 TiB")

    def __init__(self, **kwargs):
        """
            :keyword uuid: this swap space's uuid
            :keyword label: this swap space's label
            :keyword exists: whether this is an existing format
            :type exists: bool

            A swap space is always "mounted" at :data:`SWAP_MOUNTPOINT`.
        """
        kwargs["mountpoint"] = SWAP_MOUNTPOINT
        DeviceFormat.__init__(self, **kwargs)

    @property
    def desc(self):
        return "swap space"

register_device_format(SwapSpace)
