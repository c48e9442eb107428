# devices/partition.py
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

from ..freespace import Region
from ..size import Size

from .device import StorageDevice
from .lib import Tags, PartitionType, PartitionId

import logging
log = logging.getLogger("autopart")


class PartitionDevice(StorageDevice):

    """ A disk partition.

        The position of a partition is expressed in blocks of its disk.
    """
    _type = "partition"
    _tags = (Tags.partition,)

    def __init__(self, name, disk, start, length, number,
                 part_type=PartitionType.primary, part_id=None,
                 bootable=False, fmt=None, exists=False):
        """
            :param name: the device name (generally a device node's basename)
            :type name: str
            :param disk: the disk holding the partition
            :type disk: :class:`~.disk.DiskDevice`
            :param int start: the first block of the partition
            :param int length: number of blocks of the partition
            :param int number: the partition number
            :keyword part_type: primary, extended or logical
            :type part_type: :class:`~.lib.PartitionType`
            :keyword part_id: the partition id
            :type part_id: :class:`~.lib.PartitionId`
            :keyword bool bootable: whether the boot flag is set
            :keyword fmt: this device's formatting
            :keyword bool exists: whether the partition is already on disk
        """
        StorageDevice.__init__(self, name, parents=[disk], exists=exists, fmt=fmt)
        self.start = start
        self.length = length
        self.number = number
        self.part_type = PartitionType(part_type)
        if part_id is None:
            part_id = PartitionId.extended if self.is_extended else PartitionId.linux
        self.part_id = PartitionId(part_id)
        self.bootable = bootable

    def __str__(self):
        s = StorageDevice.__str__(self)
        s += " %s start %d length %d" % (self.part_type.value, self.start, self.length)
        return s

    @property
    def disk(self):
        return self.parents[0]

    @property
    def region(self):
        return Region(self.start, self.length, self.disk.block_size)

    @property
    def size(self):
        return Size(self.length * self.disk.block_size.get_bytes())

    @property
    def is_extended(self):
        return self.part_type == PartitionType.extended

    @property
    def is_logical(self):
        return self.part_type == PartitionType.logical

    @property
    def is_primary(self):
        return self.part_type == PartitionType.primary

    @property
    def recoverable_size(self):
        """ How much space shrinking this partition would free. """
        if not self.format.resizable:
            return Size(0)
        min_size = self.format.min_size.ceil(self.disk.align_grain)
        if min_size >= self.size:
            return Size(0)
        return self.size - min_size
