# volumesgenerator.py
# Translation of the proposal settings into planned volumes.
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

from ..bootrequirements import BootRequirementsChecker
from ..diskanalyzer import DiskAnalyzer
from ..errors import ConfigurationError, CyclicGraphError
from ..planned import PlannedPartition, PlannedLv, Target
from ..settings import FALLBACK_FIELDS
from ..size import Size, UNLIMITED
from ..storage_log import log_method_call, log_planned_devices
from .. import tsort

import logging
log = logging.getLogger("autopart")


class VolumesGenerator(object):

    """ Creates the list of planned volumes for a proposal attempt. """

    def __init__(self, settings, devicegraph, platform, disk_analyzer=None):
        """
            :param settings: the settings of the attempt
            :type settings: :class:`~.settings.ProposalSettings`
            :param devicegraph: the device graph the attempt starts from
            :type devicegraph: :class:`~.devicegraph.DeviceGraph`
            :param platform: the platform of the system
            :type platform: :class:`~.platform.Platform`
            :keyword disk_analyzer: analyzer of devicegraph
            :type disk_analyzer: :class:`~.diskanalyzer.DiskAnalyzer`
        """
        self.settings = settings
        self.devicegraph = devicegraph
        self.platform = platform
        self.disk_analyzer = disk_analyzer or DiskAnalyzer(devicegraph, platform)

    def planned_devices(self, target, root_disk=None):
        """ Return the volumes to create for the given target.

            :param target: whether to use the desired or the min sizes
            :type target: :class:`~.planned.Target`
            :keyword str root_disk: the disk for the root volume and the
                                    boot partitions
            :rtype: list of :class:`~.planned.PlannedVolume`
            :raises: :class:`~.errors.ConfigurationError` for invalid
                     fallbacks, :class:`~.errors.NotBootableError`
        """
        log_method_call(self, target=target, root_disk=root_disk)
        target = Target(target)
        self.check_fallbacks()

        planned = [self._planned_device(volume, target, root_disk)
                   for volume in self.settings.proposed_volumes]

        checker = BootRequirementsChecker(self.devicegraph, self.platform,
                                          planned_devices=planned, boot_disk=root_disk,
                                          encrypted=self.settings.use_encryption)
        planned.extend(checker.needed_partitions(target))

        log_planned_devices("planned devices for target %s" % target.value, planned)
        return planned

    def check_fallbacks(self):
        """ Make sure every fallback chain ends in an existing volume.

            :raises: :class:`~.errors.ConfigurationError`
        """
        mount_points = [v.mount_point for v in self.settings.volumes]
        for field in FALLBACK_FIELDS:
            edges = []
            for volume in self.settings.volumes:
                other = volume.fallback_for(field)
                if other is None:
                    continue
                if other not in mount_points:
                    raise ConfigurationError("%s of %s falls back to unknown volume %s" %
                                             (field, volume.mount_point, other))
                edges.append((other, volume.mount_point))

            try:
                tsort.tsort(tsort.create_graph(mount_points, edges))
            except CyclicGraphError as e:
                raise ConfigurationError("cyclic fallback for %s: %s" % (field, e)) from e

    def value_with_fallbacks(self, volume, field):
        """ The value of a field of a volume, resolving its fallbacks.

            An unset value is taken from the volume the field falls back
            to. The values of volumes that are not proposed are added to
            the volume they fall back to.
        """
        value = getattr(volume, field)
        if value is None and volume.fallback_for(field) is not None:
            value = self.value_with_fallbacks(self.settings.volume(volume.fallback_for(field)),
                                              field)

        for other in self.settings.volumes:
            if other.proposed or other.fallback_for(field) != volume.mount_point:
                continue
            extra = getattr(other, field)
            if extra is None:
                continue
            log.debug("adding %s of %s to %s", field, other.mount_point, volume.mount_point)
            value = extra if value is None else value + extra

        return value

    def _sizes(self, volume, target):
        min_size = self.value_with_fallbacks(volume, "min_size") or Size(0)
        desired_size = self.value_with_fallbacks(volume, "desired_size")
        if desired_size is None:
            desired_size = min_size
        max_size = self.value_with_fallbacks(volume, "max_size")
        if max_size is None:
            max_size = UNLIMITED

        if self.settings.use_lvm:
            max_size_lvm = self.value_with_fallbacks(volume, "max_size_lvm")
            if max_size_lvm is not None:
                max_size = max_size_lvm

        if volume.adjust_by_ram:
            ram = self.platform.ram_size
            log.info("adjusting %s to the RAM size %s", volume.mount_point, ram)
            min_size = max(min_size, ram)
            desired_size = max(desired_size, ram)
            max_size = max(max_size, ram)

        if volume.btrfs and volume.snapshots:
            min_size, desired_size, max_size = [self._with_snapshots(volume, size)
                                                for size in (min_size, desired_size, max_size)]

        return min_size, desired_size, max_size

    def _with_snapshots(self, volume, size):
        if volume.snapshots_size is not None:
            return size + volume.snapshots_size
        if volume.snapshots_percentage and not size.unlimited:
            return Size(size.get_bytes() * (100 + volume.snapshots_percentage) // 100)
        return size

    def _planned_device(self, volume, target, root_disk):
        min_size, desired_size, max_size = self._sizes(volume, target)
        kwargs = dict(mount_point=volume.mount_point, fs_type=volume.fs_type,
                      min_size=min_size, desired_size=desired_size, max_size=max_size,
                      weight=self.value_with_fallbacks(volume, "weight") or 0,
                      fstab_options=volume.fstab_options,
                      snapshots=volume.btrfs and volume.snapshots,
                      default_subvolume=volume.btrfs_default_subvolume if volume.btrfs else None,
                      target=target)

        if self.settings.use_lvm:
            planned = PlannedLv(**kwargs)
            if planned.can_live_on_logical_volume:
                return planned

        planned = PlannedPartition(encryption_password=self.settings.encryption_password,
                                   **kwargs)
        if planned.root:
            planned.disk = root_disk
        if planned.swap:
            self._adjust_swap(planned)
        return planned

    def _adjust_swap(self, planned):
        if self.settings.use_lvm or self.settings.use_encryption:
            return

        disks = self.settings.candidate_devices or [d.name for d in self.devicegraph.disks]
        swaps = [p for p in self.disk_analyzer.swap_partitions(*disks) if p.size >= planned.min]
        if not swaps:
            return

        reused = min(swaps, key=lambda p: (p.size, p.name))
        planned.reuse = reused.name
        log.info("planned to reuse swap %s", reused.name)
