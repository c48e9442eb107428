# devices/lvm.py
#
# Copyright (C) 2009-2014  Red Hat, Inc.
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

from ..formats.lvmpv import LVM_PE_SIZE
from ..size import Size, size_sum

from .device import Device, StorageDevice
from .lib import Tags


class LVMVolumeGroupDevice(Device):

    """ An LVM Volume Group """
    _type = "lvmvg"
    _tags = (Tags.lvm_vg,)

    def __init__(self, name, parents=None, pe_size=None, exists=False):
        """
            :param name: the device name (generally a device node's basename)
            :type name: str
            :keyword parents: a list of physical volumes
            :type parents: list of :class:`StorageDevice`
            :keyword pe_size: physical extent size
            :type pe_size: :class:`~.size.Size`
        """
        Device.__init__(self, name, parents=parents, exists=exists)
        self.pe_size = Size(pe_size or LVM_PE_SIZE)

    @property
    def pvs(self):
        return self.parents

    @property
    def lvs(self):
        return [c for c in self.children if Tags.lvm_lv in c.tags]

    @property
    def size(self):
        """ The usable size of all physical volumes. """
        return size_sum(self.align(pv.size - pv.format.pe_start) for pv in self.pvs)

    @property
    def free_space(self):
        return self.size - size_sum(lv.size for lv in self.lvs)

    def align(self, size, roundup=False):
        """ Align a size to a multiple of physical extent size. """
        if roundup:
            return size.ceil(self.pe_size)
        return size.floor(self.pe_size)


class LVMLogicalVolumeDevice(StorageDevice):

    """ An LVM Logical Volume """
    _type = "lvmlv"
    _tags = (Tags.lvm_lv,)

    def __init__(self, name, parents=None, size=None, fmt=None, exists=False):
        """
            :param name: the LV name, without the VG name
            :type name: str
            :keyword parents: a list containing the volume group
            :keyword size: the LV's size
            :type size: :class:`~.size.Size`
            :keyword fmt: this device's formatting
        """
        self.lvname = name
        name = "%s-%s" % (parents[0].name, name)
        StorageDevice.__init__(self, name, parents=parents, exists=exists, size=size, fmt=fmt)

    @property
    def vg(self):
        return self.parents[0]

    @property
    def path(self):
        return "/dev/%s/%s" % (self.vg.name, self.lvname)
