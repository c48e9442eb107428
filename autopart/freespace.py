# freespace.py
# Unused regions of partitionable disks.
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

from .size import Size


class Region(object):

    """ A contiguous range of blocks of a disk. """

    def __init__(self, start, length, block_size):
        """
            :param int start: the first block
            :param int length: number of blocks
            :param block_size: size of a block
            :type block_size: :class:`~.size.Size`
        """
        if start < 0 or length < 0:
            raise ValueError("invalid region: start %d, length %d" % (start, length))

        self.start = start
        self.length = length
        self.block_size = block_size

    def __repr__(self):
        return "Region(start=%d, length=%d, block_size=%d)" % (self.start, self.length,
                                                               self.block_size.get_bytes())

    def __eq__(self, other):
        if not isinstance(other, Region):
            return NotImplemented
        return (self.start, self.length, self.block_size) == \
            (other.start, other.length, other.block_size)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.start, self.length, self.block_size.get_bytes()))

    @property
    def end(self):
        """ The last block of the region. """
        return self.start + self.length - 1

    @property
    def size(self):
        return Size(self.length * self.block_size.get_bytes())

    @property
    def start_offset(self):
        """ Distance from the beginning of the disk to this region. """
        return Size(self.start * self.block_size.get_bytes())

    def blocks_for(self, size):
        """ Number of whole blocks needed to hold size. """
        bs = self.block_size.get_bytes()
        return -(-size.get_bytes() // bs)

    def contains(self, block):
        return self.start <= block <= self.end

    def overlaps(self, other):
        return self.start <= other.end and other.start <= self.end


class FreeDiskSpace(object):

    """ A free region of a disk, where new partitions can be created.

        Disks without a partition table report their free space as if a
        partition table of the preferred type existed, so the disklabel
        may not belong to the disk yet.
    """

    def __init__(self, disk, region, disklabel, inside_extended=False,
                 growing=False, exists=True):
        """
            :param disk: the disk the space belongs to
            :type disk: :class:`~.devices.DiskDevice`
            :param region: the unused blocks
            :type region: :class:`Region`
            :param disklabel: the (maybe not yet created) partition table
            :type disklabel: :class:`~.formats.disklabel.DiskLabel`
            :keyword bool inside_extended: whether the space is inside an
                                           extended partition
            :keyword bool growing: whether the space will grow when an
                                   adjacent partition is shrunk
            :keyword bool exists: False for spaces that only appear once a
                                  partition is shrunk
        """
        self.disk = disk
        self.region = region
        self.disklabel = disklabel
        self.inside_extended = inside_extended
        self.growing = growing
        self.exists = exists

    def __repr__(self):
        return ("<FreeDiskSpace disk=%s start=%d size=%s%s>" %
                (self.disk_name, self.region.start, self.disk_size,
                 " growing" if self.growing else ""))

    def __eq__(self, other):
        if not isinstance(other, FreeDiskSpace):
            return NotImplemented
        return self._key == other._key

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(self._key)

    @property
    def _key(self):
        return (self.disk_name, self.region, self.growing)

    @property
    def disk_name(self):
        return self.disk.name

    @property
    def disk_size(self):
        return self.region.size

    size = disk_size

    @property
    def start_offset(self):
        return self.region.start_offset

    @property
    def align_grain(self):
        return self.disk.align_grain

    @property
    def require_end_alignment(self):
        return self.disklabel.require_end_alignment

    def as_growing(self):
        """ Return a copy of this space marked as growing. """
        return FreeDiskSpace(self.disk, self.region, self.disklabel,
                             inside_extended=self.inside_extended,
                             growing=True, exists=self.exists)
