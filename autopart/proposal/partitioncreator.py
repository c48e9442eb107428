# partitioncreator.py
# Creation of the partitions of a distribution.
#
# Copyright (C) 2009-2015  Red Hat, Inc.
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

from collections import OrderedDict, namedtuple

from ..devices import PartitionType, PartitionId
from ..errors import NoDiskSpaceError
from ..freespace import Region
from ..storage_log import log_method_call

import logging
log = logging.getLogger("autopart")

PartitionCreationResult = namedtuple("PartitionCreationResult", ["devicegraph", "devices_map"])


class PartitionCreator(object):

    """ Creates the planned partitions of a distribution in a device graph. """

    def __init__(self, devicegraph):
        """
            :param devicegraph: the graph the distribution was calculated for
            :type devicegraph: :class:`~.devicegraph.DeviceGraph`
        """
        self.original_graph = devicegraph
        self.devicegraph = None

    def create_partitions(self, distribution):
        """ Create the partitions of the distribution in a copy of the graph.

            :param distribution: the distribution to create
            :type distribution: :class:`~.distribution.PartitionsDistribution`
            :returns: the new graph and a map of the new partition names to
                      the sized planned partitions
            :rtype: :class:`PartitionCreationResult`
            :raises: :class:`~.errors.NoDiskSpaceError`,
                     :class:`~.errors.DeviceError`
        """
        self.devicegraph = self.original_graph.copy()
        devices_map = OrderedDict()
        for space in distribution.spaces:
            volumes = space.distribute()
            for volume in volumes:
                log.info("partition %s: size %s (min %s, max %s, weight %s)",
                         volume.mount_point, volume.disk_size, volume.min, volume.max,
                         volume.weight)
            devices_map.update(self._create_planned_partitions(volumes, space.disk_space,
                                                               space.num_logical))
        return PartitionCreationResult(self.devicegraph, devices_map)

    def _create_planned_partitions(self, volumes, initial_space, num_logical):
        devices_map = OrderedDict()
        for idx, volume in enumerate(volumes):
            space = self._free_space_within(initial_space)
            primary = len(volumes) - idx > num_logical
            partition = self._create_partition(volume, space, primary)
            devices_map[partition.name] = volume
        return devices_map

    def _free_space_within(self, initial_space):
        """ The first free space inside the region of initial_space. """
        disk = self.devicegraph.find_device(initial_space.disk_name)
        label_type = initial_space.disklabel.label_type
        region = initial_space.region
        spaces = [s for s in disk.free_spaces(label_type=label_type)
                  if region.start <= s.region.start < region.end]
        if not spaces:
            raise NoDiskSpaceError("exhausted free space")
        return spaces[0]

    def _partition_table(self, disk, label_type):
        if disk.partition_table is None:
            log.info("creating a %s partition table on %s", label_type, disk.name)
            self.devicegraph.new_partition_table(disk, label_type)
        return disk.partition_table

    def _create_partition(self, volume, space, primary):
        log_method_call(self, volume.mount_point, size=volume.disk_size, primary=primary)
        disk = self.devicegraph.find_device(space.disk_name)
        self._partition_table(disk, space.disklabel.label_type)

        part_type = PartitionType.primary
        if not primary:
            if disk.extended_partition is None:
                self.devicegraph.new_partition(disk, space.region,
                                               part_type=PartitionType.extended)
                space = self._free_space_within(space)
            part_type = PartitionType.logical

        region = self._new_region_with_size(space.region, volume.disk_size)
        return self.devicegraph.new_partition(disk, region, part_type=part_type,
                                              part_id=self._partition_id(volume),
                                              bootable=getattr(volume, "bootable", False))

    @staticmethod
    def _new_region_with_size(region, size):
        blocks = size.get_bytes() // region.block_size.get_bytes()
        if region.start + blocks > region.end:
            blocks = region.end - region.start + 1
        return Region(region.start, blocks, region.block_size)

    @staticmethod
    def _partition_id(volume):
        partition_id = getattr(volume, "partition_id", None)
        if partition_id is not None:
            return partition_id
        if volume.swap:
            return PartitionId.swap
        return PartitionId.linux
