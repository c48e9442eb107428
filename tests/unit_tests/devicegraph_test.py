import unittest

from autopart.devicegraph import DeviceGraph
from autopart.devices import PartitionType, PartitionId
from autopart.devices.lib import partition_name
from autopart.errors import HierarchyError, DeviceCreateError, DeviceResizeError
from autopart.fakefactory import DeviceGraphFactory
from autopart.freespace import Region
from autopart.size import Size

MiB_BLOCKS = 2048


class DeviceGraphTestCase(unittest.TestCase):

    def setUp(self):
        self.graph = DeviceGraph()
        self.disk = self.graph.new_disk("sda", Size("10 GiB"))

    def _region(self, start_mib, size_mib):
        return Region(start_mib * MiB_BLOCKS, size_mib * MiB_BLOCKS, self.disk.block_size)

    def test_partition_names(self):
        self.assertEqual(partition_name("sda", 1), "sda1")
        self.assertEqual(partition_name("nvme0n1", 2), "nvme0n1p2")
        self.assertEqual(partition_name("mmcblk0", 5), "mmcblk0p5")

    def test_free_spaces_without_partition_table(self):
        self.assertEqual(self.graph.free_spaces(), [])

        spaces = self.graph.free_spaces(label_type="msdos")
        self.assertEqual(len(spaces), 1)
        self.assertEqual(spaces[0].region.start, MiB_BLOCKS)
        self.assertEqual(spaces[0].disk_size, Size("10 GiB") - Size("1 MiB"))
        self.assertEqual(spaces[0].disklabel.label_type, "msdos")
        # the table is only assumed
        self.assertIsNone(self.disk.partition_table)

    def test_free_spaces_gpt(self):
        self.graph.new_partition_table(self.disk, "gpt")
        spaces = self.graph.free_spaces()
        self.assertEqual(len(spaces), 1)
        # the backup GPT uses 33 blocks at the end of the disk
        self.assertEqual(spaces[0].disk_size,
                         Size("10 GiB") - Size("1 MiB") - Size(33 * 512))

    def test_formatted_disk_has_no_free_space(self):
        self.graph.new_format(self.disk, "ext4")
        self.assertEqual(self.graph.free_spaces(label_type="gpt"), [])

    def test_primary_slots(self):
        self.graph.new_partition_table(self.disk, "msdos")
        for i in range(4):
            part = self.graph.new_partition(self.disk, self._region(1 + i * 100, 100))
            self.assertEqual(part.name, "sda%d" % (i + 1))

        with self.assertRaises(HierarchyError):
            self.graph.new_partition(self.disk, self._region(500, 100))

    def test_overlapping_partitions(self):
        self.graph.new_partition_table(self.disk, "msdos")
        self.graph.new_partition(self.disk, self._region(1, 100))
        with self.assertRaises(HierarchyError):
            self.graph.new_partition(self.disk, self._region(50, 100))

        with self.assertRaises(DeviceCreateError):
            self.graph.new_partition(self.disk, self._region(0, 1))

    def test_logical_partitions(self):
        self.graph.new_partition_table(self.disk, "msdos")
        extended = self.graph.new_partition(self.disk, self._region(1, 1000),
                                            part_type=PartitionType.extended)
        self.assertEqual(extended.part_id, PartitionId.extended)

        logical = self.graph.new_partition(self.disk, self._region(2, 100),
                                           part_type=PartitionType.logical)
        self.assertEqual(logical.name, "sda5")
        self.assertTrue(logical.is_logical)

        # a logical partition must be inside the extended one
        with self.assertRaises(HierarchyError):
            self.graph.new_partition(self.disk, self._region(1100, 100),
                                     part_type=PartitionType.logical)

        # the space after the logical partition starts after the next EBR
        inside = [s for s in self.graph.free_spaces() if s.inside_extended]
        self.assertEqual(len(inside), 1)
        self.assertEqual(inside[0].region.start, 103 * MiB_BLOCKS)

        removed = self.graph.delete_partition(extended)
        self.assertEqual(sorted(removed), ["sda1", "sda5"])
        self.assertEqual(self.disk.partitions, [])

    def test_no_extended_on_gpt(self):
        self.graph.new_partition_table(self.disk, "gpt")
        with self.assertRaises(HierarchyError):
            self.graph.new_partition(self.disk, self._region(1, 100),
                                     part_type=PartitionType.extended)

    def test_copy_is_independent(self):
        self.graph.new_partition_table(self.disk, "msdos")
        self.graph.new_partition(self.disk, self._region(1, 100))

        copied = self.graph.copy()
        copied.delete_partition(copied.find_device("sda1"))
        self.assertIsNone(copied.get_device_by_name("sda1"))
        self.assertIsNotNone(self.graph.get_device_by_name("sda1"))
        self.assertEqual(len(self.disk.partitions), 1)

    def test_recursive_remove(self):
        self.graph.new_partition_table(self.disk, "msdos")
        part = self.graph.new_partition(self.disk, self._region(1, 100))
        luks = self.graph.new_luks(part, "cr_sda1", "secret")
        self.graph.new_format(luks, "ext4", mountpoint="/")
        self.assertEqual(self.graph.mountpoints, {"/": luks})
        self.assertEqual(luks.raw_device, part)

        removed = self.graph.recursive_remove(part)
        self.assertEqual(removed, ["cr_sda1", "sda1"])
        self.assertEqual(self.disk.children, [])

    def test_remove_partition_table(self):
        self.graph.new_partition_table(self.disk, "msdos")
        self.graph.new_partition(self.disk, self._region(1, 100))
        with self.assertRaises(HierarchyError):
            self.graph.remove_partition_table(self.disk)

        self.graph.delete_partition(self.disk.partitions[0])
        self.graph.remove_partition_table(self.disk)
        self.assertIsNone(self.disk.partition_table)


class ResizeTestCase(unittest.TestCase):

    def setUp(self):
        self.graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 100 GiB
    partition_table: msdos
    partitions:
    - partition:
        size: 50 GiB
        name: sda1
        id: ntfs
        windows_system: true
        min_size: 10 GiB
        file_system: ntfs
    - partition:
        size: 10 GiB
        name: sda2
        file_system: xfs
""")

    def test_recoverable_size(self):
        self.assertEqual(self.graph.find_device("sda1").recoverable_size, Size("40 GiB"))
        # xfs cannot be shrunk
        self.assertEqual(self.graph.find_device("sda2").recoverable_size, Size(0))

    def test_resize(self):
        sda1 = self.graph.find_device("sda1")
        new_size = self.graph.resize_partition(sda1, Size("30 GiB"))
        self.assertEqual(new_size, Size("30 GiB"))
        self.assertEqual(sda1.size, Size("30 GiB"))

        with self.assertRaises(DeviceResizeError):
            self.graph.resize_partition(sda1, Size("5 GiB"))

        with self.assertRaises(DeviceResizeError):
            self.graph.resize_partition(sda1, Size("40 GiB"))

        with self.assertRaises(DeviceResizeError):
            self.graph.resize_partition(self.graph.find_device("sda2"), Size("5 GiB"))
