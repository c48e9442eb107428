# generator.py
# Creation of the device graph of a proposal attempt.
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

from collections import OrderedDict

from ..devices import PartitionId
from ..planned import PlannedPartition, PlannedLv, Target
from ..storage_log import log_method_call
from .lvmcreator import LvmHelper, LvmCreator
from .partitioncreator import PartitionCreator

import logging
log = logging.getLogger("autopart")


class DevicegraphGenerator(object):

    """ Turns a list of planned devices into a device graph.

        Space is made with a :class:`~.spacemaker.SpaceMaker`, then the
        partitions are created, followed by the encryption layers, the
        volume group and the formats.
    """

    def __init__(self, settings):
        """
            :param settings: the settings of the attempt
            :type settings: :class:`~.settings.ProposalSettings`
        """
        self.settings = settings
        self.devices_map = OrderedDict()

    def devicegraph(self, planned_devices, initial_graph, space_maker, target=Target.desired):
        """ Create a new graph with the planned devices.

            :param planned_devices: the volumes to create or reuse
            :type planned_devices: list of :class:`~.planned.PlannedVolume`
            :param initial_graph: the graph to start from, left untouched
            :type initial_graph: :class:`~.devicegraph.DeviceGraph`
            :param space_maker: the space maker for the candidate disks
            :type space_maker: :class:`~.spacemaker.SpaceMaker`
            :keyword target: the size target of the attempt
            :type target: :class:`~.planned.Target`
            :returns: the new graph
            :rtype: :class:`~.devicegraph.DeviceGraph`
            :raises: :class:`~.errors.ProposalError`,
                     :class:`~.errors.DeviceError`
        """
        log_method_call(self, target=target)
        planned_devices = [p.copy() for p in planned_devices]
        partitions = [p for p in planned_devices if isinstance(p, PlannedPartition)]
        planned_lvs = [p for p in planned_devices if isinstance(p, PlannedLv)]

        lvm_helper = LvmHelper(planned_lvs, encryption_password=self.settings.encryption_password)
        planned_pv = lvm_helper.planned_pv(target)
        if planned_pv is not None:
            partitions.append(planned_pv)

        result = space_maker.provide_space(initial_graph, partitions)
        log.info("found enough space")
        self._refine_swap(partitions, result.deleted_partitions)

        creation = PartitionCreator(result.devicegraph).create_partitions(result.distribution)
        graph = creation.devicegraph
        self.devices_map = OrderedDict()

        pv_devices = []
        for name, planned in creation.devices_map.items():
            device = graph.find_device(name)
            if planned.lvm_pv:
                pv_devices.append(self._encrypt(graph, device, planned))
                continue
            self.devices_map[name] = planned
            self._format(graph, device, planned)

        self._reuse(graph, [p for p in partitions if p.reuse])

        if planned_lvs:
            lvs_map = LvmCreator(graph, self.settings.lvm_vg_name).create_volumes(planned_lvs,
                                                                                 pv_devices)
            for name, planned in lvs_map.items():
                self.devices_map[name] = planned
                self._format(graph, graph.find_device(name), planned)

        return graph

    @staticmethod
    def _refine_swap(partitions, deleted_partitions):
        """ Let the new swap volumes take the identity of the deleted ones. """
        deleted_swaps = [p for p in deleted_partitions
                         if p.part_id == PartitionId.swap or p.format.type == "swap"]
        new_swaps = [p for p in partitions if p.swap and not p.reuse]
        for planned, deleted in zip(new_swaps, deleted_swaps):
            log.info("new swap takes uuid and label of %s", deleted.name)
            planned.uuid = deleted.format.uuid
            planned.label = deleted.format.label

    @staticmethod
    def _encrypt(graph, device, planned):
        if not planned.encrypt:
            return device
        return graph.new_luks(device, "luks-%s" % device.name, planned.encryption_password)

    def _format(self, graph, device, planned):
        device = self._encrypt(graph, device, planned)
        if not planned.fs_type:
            return

        kwargs = dict(mountpoint=planned.mount_point, label=planned.label, uuid=planned.uuid,
                      options=",".join(planned.fstab_options) or None)
        if planned.fs_type == "btrfs":
            kwargs["snapshots"] = planned.snapshots
            kwargs["default_subvolume"] = planned.default_subvolume
        graph.new_format(device, planned.fs_type, **kwargs)
        log.info("%s formatted as %s for %s", device.name, planned.fs_type,
                 planned.mount_point)

    def _reuse(self, graph, planned_partitions):
        for planned in planned_partitions:
            device = graph.find_device(planned.reuse)
            self.devices_map[device.name] = planned
            if planned.mount_point and planned.mount_point != "swap":
                device.format.mountpoint = planned.mount_point
            if getattr(planned, "bootable", False) and \
               device.disk.partition_table.boot_flag_supported:
                device.bootable = True
            log.info("reusing %s for %s", device.name, planned.mount_point)
