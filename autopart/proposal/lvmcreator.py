# lvmcreator.py
# LVM volume group and logical volumes of the storage proposal.
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
from ..devices.lvm import LVM_PE_SIZE
from ..formats.luks import LUKS_METADATA_SIZE
from ..formats.lvmpv import LVM_PE_START
from ..planned import PlannedPartition, distribute_space
from ..size import Size, UNLIMITED, size_sum
from ..storage_log import log_method_call

import logging
log = logging.getLogger("autopart")

DEFAULT_VG_NAME = "system"
DEFAULT_LV_NAME = "lv"


def available_name(name, taken):
    """ Return name, or name with the first numeric suffix not in taken. """
    if name not in taken:
        return name

    suffix = 0
    while "%s%d" % (name, suffix) in taken:
        suffix += 1
    return "%s%d" % (name, suffix)


class LvmHelper(object):

    """ Space needed by the planned logical volumes.

        All the logical volumes go into one new volume group with a single
        physical volume, which is planned as one more partition.
    """

    def __init__(self, planned_lvs, encryption_password=None, pe_size=None):
        """
            :param planned_lvs: the logical volumes to create
            :type planned_lvs: list of :class:`~.planned.PlannedLv`
            :keyword str encryption_password: encrypt the physical volume
            :keyword pe_size: the extent size of the volume group
            :type pe_size: :class:`~.size.Size`
        """
        self.planned_lvs = list(planned_lvs)
        self.encryption_password = encryption_password
        self.pe_size = Size(pe_size or LVM_PE_SIZE)

    @property
    def overhead(self):
        """ Space of the physical volume that logical volumes cannot use. """
        overhead = LVM_PE_START
        if self.encryption_password:
            overhead += LUKS_METADATA_SIZE
        return overhead

    def _size_sum(self, sizes):
        if any(s.unlimited for s in sizes):
            return UNLIMITED
        return size_sum(sizes, rounding=self.pe_size) + self.overhead

    def planned_pv(self, target):
        """ The partition for the physical volume or None if it is not needed.

            :param target: the size target of the attempt
            :type target: :class:`~.planned.Target`
            :rtype: :class:`~.planned.PlannedPartition`
        """
        if not self.planned_lvs:
            return None

        min_size = self._size_sum([lv.min_valid_disk_size(target) for lv in self.planned_lvs])
        max_size = self._size_sum([lv.max for lv in self.planned_lvs])
        weight = sum(lv.weight for lv in self.planned_lvs)
        pv = PlannedPartition(partition_id=PartitionId.lvm, lvm_pv=True, min_size=min_size,
                              desired_size=min_size, max_size=max_size, weight=weight,
                              encryption_password=self.encryption_password,
                              target=target)
        log.info("planned physical volume: min %s, max %s, weight %s", min_size, max_size,
                 weight)
        return pv


class LvmCreator(object):

    """ Creates the volume group and the logical volumes in a device graph. """

    def __init__(self, devicegraph, vg_name=DEFAULT_VG_NAME):
        """
            :param devicegraph: the graph holding the physical volume partition
            :type devicegraph: :class:`~.devicegraph.DeviceGraph`
            :keyword str vg_name: preferred name for the volume group
        """
        self.devicegraph = devicegraph
        self.vg_name = vg_name or DEFAULT_VG_NAME

    def create_volumes(self, planned_lvs, pv_devices, pe_size=None):
        """ Create a volume group on pv_devices holding the planned volumes.

            :param planned_lvs: the logical volumes to create
            :type planned_lvs: list of :class:`~.planned.PlannedLv`
            :param pv_devices: the devices for the physical volumes
            :type pv_devices: list of :class:`~.devices.StorageDevice`
            :keyword pe_size: the extent size of the volume group
            :type pe_size: :class:`~.size.Size`
            :returns: a map of the new logical volume names to the sized
                      planned volumes
            :rtype: dict
            :raises: :class:`~.errors.NoDiskSpaceError`
        """
        log_method_call(self, self.vg_name, pvs=[pv.name for pv in pv_devices])
        devices_map = OrderedDict()
        if not planned_lvs:
            return devices_map

        name = available_name(self.vg_name, self.devicegraph.names)
        vg = self.devicegraph.new_vg(name, pv_devices, pe_size=pe_size)
        log.info("created volume group %s of %s", vg.name, vg.size)

        lvs = distribute_space(planned_lvs, vg.size, rounding=vg.pe_size)
        for planned in lvs:
            lv_name = available_name(planned.lv_name or DEFAULT_LV_NAME,
                                     [lv.lvname for lv in vg.lvs])
            lv = self.devicegraph.new_lv(vg, lv_name, planned.disk_size)
            log.info("created logical volume %s of %s for %s", lv.name, lv.size,
                     planned.mount_point)
            devices_map[lv.name] = planned

        return devices_map
