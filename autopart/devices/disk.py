# devices/disk.py
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

from ..formats import get_format
from ..freespace import FreeDiskSpace, Region
from ..size import Size
from ..storage_log import log_method_call

from .device import StorageDevice
from .lib import Tags, PartitionType, LINUX_SECTOR_SIZE, DEFAULT_ALIGN_GRAIN

import logging
log = logging.getLogger("autopart")


class DiskDevice(StorageDevice):

    """ A local/generic disk.

        Partitions are children of the disk. A disk whose format is a
        :class:`~.formats.disklabel.DiskLabel` is partitioned; any other
        format covers the whole disk.
    """
    _type = "disk"
    _tags = (Tags.disk,)

    def __init__(self, name, size=None, fmt=None, exists=True,
                 block_size=None, align_grain=None, tags=None):
        """
            :param name: the device name (generally a device node's basename)
            :type name: str
            :keyword size: the device's size
            :type size: :class:`~.size.Size`
            :keyword fmt: this device's formatting
            :type fmt: :class:`~.formats.DeviceFormat` or a subclass of it
            :keyword block_size: the logical block size
            :type block_size: :class:`~.size.Size`
            :keyword align_grain: the unit partitions are aligned to
            :type align_grain: :class:`~.size.Size`
            :keyword tags: additional tags, e.g. :attr:`~.lib.Tags.usb`
        """
        StorageDevice.__init__(self, name, exists=exists, size=size, fmt=fmt)
        self.block_size = Size(block_size or LINUX_SECTOR_SIZE)
        self.align_grain = Size(align_grain or DEFAULT_ALIGN_GRAIN)
        if self.align_grain.get_bytes() % self.block_size.get_bytes():
            raise ValueError("alignment grain must be a multiple of the block size")
        self.tags.update(tags or [])

    @property
    def partition_table(self):
        """ The disklabel of this disk or None. """
        if self.format.type == "disklabel":
            return self.format
        return None

    @property
    def partitions(self):
        """ This disk's partitions, sorted by their position. """
        parts = [c for c in self.children if Tags.partition in c.tags]
        return sorted(parts, key=lambda p: p.start)

    @property
    def extended_partition(self):
        return next((p for p in self.partitions if p.part_type == PartitionType.extended), None)

    @property
    def logical_partitions(self):
        return [p for p in self.partitions if p.part_type == PartitionType.logical]

    @property
    def num_primary(self):
        """ Number of used primary slots (the extended partition included). """
        return len([p for p in self.partitions if p.part_type != PartitionType.logical])

    @property
    def total_blocks(self):
        return self.size.get_bytes() // self.block_size.get_bytes()

    @property
    def grain_blocks(self):
        return self.align_grain.get_bytes() // self.block_size.get_bytes()

    @property
    def usb(self):
        return Tags.usb in self.tags

    def align_up(self, block):
        grain = self.grain_blocks
        return -(-block // grain) * grain

    def align_down(self, block):
        grain = self.grain_blocks
        return (block // grain) * grain

    def usable_blocks(self, disklabel):
        """ Return the first and the last block partitions may use. """
        first = self.grain_blocks
        end_overhead = -(-disklabel.end_overhead.get_bytes() // self.block_size.get_bytes())
        last = self.total_blocks - end_overhead - 1
        return first, last

    def free_spaces(self, label_type=None):
        """ Compute the free spaces of this disk.

            :keyword str label_type: the partition table type to assume
                                     if the disk has no format at all
            :returns: the free spaces, sorted by position
            :rtype: list of :class:`~.freespace.FreeDiskSpace`

            A disk formatted as a whole has no free space. Spaces smaller
            than the alignment grain are not reported.
        """
        log_method_call(self, self.name, label_type=label_type)
        disklabel = self.partition_table
        if disklabel is None:
            if self.formatted or label_type is None:
                return []
            disklabel = get_format("disklabel", label_type=label_type)

        first, last = self.usable_blocks(disklabel)
        occupied = [p.region for p in self.partitions
                    if p.part_type != PartitionType.logical]
        spaces = [FreeDiskSpace(self, region, disklabel)
                  for region in self._gaps(first, last, occupied, disklabel, 0)]

        extended = self.extended_partition
        if extended is not None:
            # every logical partition is preceded by its EBR
            grain = self.grain_blocks
            occupied = [Region(p.start - grain, p.length + grain, self.block_size)
                        for p in self.logical_partitions]
            regions = self._gaps(extended.start, extended.region.end, occupied,
                                 disklabel, grain)
            spaces.extend(FreeDiskSpace(self, region, disklabel, inside_extended=True)
                          for region in regions)

        return sorted(spaces, key=lambda s: s.region.start)

    def _gaps(self, first, last, occupied, disklabel, lead):
        """ Yield the aligned regions between first and last not in occupied. """
        cursor = first
        limits = sorted(occupied, key=lambda r: r.start) + [Region(last + 1, 0, self.block_size)]
        for region in limits:
            start = self.align_up(cursor) + lead
            end = region.start
            if disklabel.require_end_alignment:
                end = self.align_down(end)
            if end - start >= self.grain_blocks:
                yield Region(start, end - start, self.block_size)
            cursor = max(cursor, region.end + 1)
