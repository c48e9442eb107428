# bootrequirements.py
# Partitions needed to boot the installed system.
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

from .devices import PartitionId
from .diskanalyzer import DiskAnalyzer
from .errors import NotBootableError
from .i18n import _
from .planned import PlannedPartition, Target
from .size import Size
from .storage_log import log_method_call

import logging
log = logging.getLogger("autopart")

EFI_MIN_SIZE = Size("256 MiB")
EFI_MAX_SIZE = Size("512 MiB")
BIOS_BOOT_MIN_SIZE = Size("1 MiB")
BIOS_BOOT_MAX_SIZE = Size("8 MiB")
BIOS_BOOT_MAX_START_OFFSET = Size("2 TiB")
PREP_MIN_SIZE = Size("4 MiB")
PREP_MAX_SIZE = Size("8 MiB")
PREP_MAX_START_OFFSET = Size("16 MiB")
BOOT_MIN_SIZE = Size("512 MiB")
BOOT_MAX_SIZE = Size("1 GiB")


class BootRequirementsChecker(object):

    """ Computes the partitions the boot loader needs on a platform.

        EFI systems need an EFI system partition, legacy x86 systems booting
        from a GPT disk a BIOS boot partition and PowerPC systems a PReP
        partition. A separate unencrypted /boot is needed when the root
        filesystem is encrypted and the firmware cannot read it.
    """

    def __init__(self, devicegraph, platform, planned_devices=None,
                 boot_disk=None, encrypted=False):
        """
            :param devicegraph: the device graph the proposal starts from
            :type devicegraph: :class:`~.devicegraph.DeviceGraph`
            :param platform: the platform of the system
            :type platform: :class:`~.platform.Platform`
            :keyword planned_devices: the volumes planned so far
            :type planned_devices: list of :class:`~.planned.PlannedVolume`
            :keyword str boot_disk: name of the disk to boot from
            :keyword bool encrypted: whether the planned volumes get encrypted
        """
        self.devicegraph = devicegraph
        self.platform = platform
        self.planned_devices = list(planned_devices or [])
        self.boot_disk_name = boot_disk
        self.encrypted = encrypted

    @property
    def boot_disk(self):
        """ The disk to boot from.

            :raises: :class:`~.errors.NotBootableError` if it does not exist
        """
        if self.boot_disk_name is None:
            disks = self.devicegraph.disks
            if not disks:
                raise NotBootableError(_("There is no disk to boot from."))
            return disks[0]

        disk = self.devicegraph.get_device_by_name(self.boot_disk_name)
        if disk is None:
            raise NotBootableError(_("The boot disk %s does not exist.") % self.boot_disk_name)
        return disk

    def _planned(self, mount_point):
        return next((p for p in self.planned_devices if p.mount_point == mount_point), None)

    def _boot_label_type(self, disk):
        table = disk.partition_table
        if table is not None:
            return table.label_type
        return self.platform.best_disklabel_type(disk)

    def needed_partitions(self, target=Target.desired):
        """ The partitions to add to the planned devices.

            :keyword target: the size target of the attempt
            :type target: :class:`~.planned.Target`
            :rtype: list of :class:`~.planned.PlannedPartition`
            :raises: :class:`~.errors.NotBootableError`
        """
        log_method_call(self, boot_disk=self.boot_disk_name, target=target)
        disk = self.boot_disk
        needed = []

        if self.platform.efi:
            needed.extend(self._efi_partitions(disk, target))
        elif self.platform.ppc:
            needed.extend(self._prep_partitions(disk, target))
        elif self.platform.type == "x86":
            needed.extend(self._bios_boot_partitions(disk, target))

        needed.extend(self._boot_partitions(disk, target))

        for planned in needed:
            log.info("boot requirement on %s: %s", disk.name, planned)
        return needed

    def _efi_partitions(self, disk, target):
        if self._planned("/boot/efi") is not None:
            return []

        analyzer = DiskAnalyzer(self.devicegraph, self.platform)
        existing = [p for p in analyzer.efi_partitions(disk) if p.size >= EFI_MIN_SIZE]
        if existing:
            esp = existing[0]
            log.info("reusing EFI system partition %s", esp.name)
            return [PlannedPartition(mount_point="/boot/efi", fs_type="efi",
                                     partition_id=PartitionId.esp, reuse=esp.name,
                                     disk=disk.name, target=target)]

        return [PlannedPartition(mount_point="/boot/efi", fs_type="efi",
                                 partition_id=PartitionId.esp,
                                 min_size=EFI_MIN_SIZE, desired_size=EFI_MAX_SIZE,
                                 max_size=EFI_MAX_SIZE, disk=disk.name, target=target)]

    def _bios_boot_partitions(self, disk, target):
        if self._boot_label_type(disk) != "gpt":
            return []

        if any(p.part_id == PartitionId.bios_boot for p in disk.partitions):
            log.info("%s already has a BIOS boot partition", disk.name)
            return []

        return [PlannedPartition(fs_type="biosboot", partition_id=PartitionId.bios_boot,
                                 min_size=BIOS_BOOT_MIN_SIZE, desired_size=BIOS_BOOT_MIN_SIZE,
                                 max_size=BIOS_BOOT_MAX_SIZE,
                                 max_start_offset=BIOS_BOOT_MAX_START_OFFSET,
                                 disk=disk.name, target=target)]

    def _prep_partitions(self, disk, target):
        if any(p.part_id == PartitionId.prep for p in disk.partitions):
            log.info("%s already has a PReP partition", disk.name)
            return []

        return [PlannedPartition(fs_type="prepboot", partition_id=PartitionId.prep,
                                 min_size=PREP_MIN_SIZE, desired_size=PREP_MIN_SIZE,
                                 max_size=PREP_MAX_SIZE, max_start_offset=PREP_MAX_START_OFFSET,
                                 primary=True, bootable=True, disk=disk.name, target=target)]

    def _boot_partitions(self, disk, target):
        if self.platform.efi or self._planned("/boot") is not None:
            return []

        root = self._planned("/")
        encrypted_root = self.encrypted or (root is not None and root.encrypt)
        if not encrypted_root:
            return []

        return [PlannedPartition(mount_point="/boot", fs_type="ext4",
                                 min_size=BOOT_MIN_SIZE, desired_size=BOOT_MAX_SIZE,
                                 max_size=BOOT_MAX_SIZE, disk=disk.name, target=target)]
