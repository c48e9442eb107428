# lvmpv.py
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
from ..i18n import N_
from ..size import Size

# start of the first physical extent, lvm's default
LVM_PE_START = Size("1 MiB")
LVM_PE_SIZE = Size("4 MiB")


class LVMPhysicalVolume(DeviceFormat):

    """ An LVM physical volume. """
    _type = "lvmpv"
    _name = N_("physical volume (LVM)")
    _linux_native = True                # for space making
    _min_size = LVM_PE_SIZE + LVM_PE_START

    def __init__(self, **kwargs):
        """
            :keyword vg_name: the name of the VG this PV belongs to
            :keyword pe_start: offset of first physical extent
            :type pe_start: :class:`~.size.Size`
        """
        DeviceFormat.__init__(self, **kwargs)
        self.vg_name = kwargs.get("vg_name")
        self.pe_start = kwargs.get("pe_start", LVM_PE_START)

    def dict(self):
        data = super(LVMPhysicalVolume, self).dict()
        data.update({"vg_name": self.vg_name, "pe_start": self.pe_start})
        return data

register_device_format(LVMPhysicalVolume)
