import unittest
from unittest.mock import patch

from autopart import fakefactory
from autopart.devices import PartitionType, PartitionId, Tags
from autopart.errors import FactoryError
from autopart.fakefactory import DeviceGraphFactory
from autopart.size import Size


class DeviceGraphFactoryTestCase(unittest.TestCase):

    def test_partitions(self):
        graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 100 GiB
    partition_table: msdos
    partitions:
    - partition:
        size: 40 GiB
        name: sda1
        id: ntfs
        windows_system: true
        min_size: 10 GiB
        file_system: ntfs
        label: windows
    - free:
        size: 10 GiB
    - partition:
        size: unlimited
        name: sda2
        file_system: ext4
        mount_point: /
        fstab_options: [noatime, acl]
""")
        disk = graph.find_device("sda")
        self.assertEqual(disk.partition_table.label_type, "msdos")
        self.assertTrue(disk.partition_table.exists)

        sda1, sda2 = disk.partitions
        self.assertTrue(sda1.exists)
        self.assertEqual(sda1.part_id, PartitionId.ntfs)
        self.assertEqual(sda1.size, Size("40 GiB"))
        self.assertTrue(sda1.format.windows_system)
        self.assertEqual(sda1.format.min_size, Size("10 GiB"))
        self.assertEqual(sda1.format.label, "windows")

        # the free space is left before sda2
        self.assertEqual(sda2.region.start - sda1.region.end - 1, 10 * 1024 * 2048)
        self.assertEqual(sda2.region.end, disk.total_blocks - 1)
        self.assertEqual(sda2.format.mountpoint, "/")
        self.assertEqual(sda2.format.options, "noatime,acl")
        self.assertEqual(graph.mountpoints, {"/": sda2})

    def test_free_space_order(self):
        graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 50 GiB
    partition_table: gpt
    partitions:
    - partition:
        size: 10 GiB
        name: sda1
    - free:
        size: 10 GiB
    - partition:
        size: 10 GiB
        name: sda2
    - free:
        size: 5 GiB
    - partition:
        size: 10 GiB
        name: sda3
""")
        sda1, sda2, sda3 = graph.find_device("sda").partitions
        gib = 1024 * 2048
        self.assertEqual(sda2.region.start - sda1.region.end - 1, 10 * gib)
        self.assertEqual(sda3.region.start - sda2.region.end - 1, 5 * gib)

    def test_disk_attributes(self):
        graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sdb
    size: 16 GiB
    block_size: 4 KiB
    usb: true
- disk:
    name: sdc
    size: 4 GiB
    installation_media: true
    file_system: vfat
""")
        sdb = graph.find_device("sdb")
        self.assertEqual(sdb.block_size, Size("4 KiB"))
        self.assertIn(Tags.usb, sdb.tags)
        self.assertIsNone(sdb.partition_table)

        sdc = graph.find_device("sdc")
        self.assertIn(Tags.installation_media, sdc.tags)
        self.assertTrue(sdc.formatted)
        self.assertTrue(sdc.format.exists)

    def test_logical_partitions(self):
        graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 50 GiB
    partition_table: msdos
    partitions:
    - partition:
        size: 10 GiB
        name: sda1
    - partition:
        size: 30 GiB
        name: sda2
        type: extended
    - partition:
        size: 10 GiB
        name: sda5
        type: logical
    - partition:
        size: unlimited
        name: sda6
        type: logical
    - partition:
        size: unlimited
        name: sda3
""")
        disk = graph.find_device("sda")
        extended = disk.extended_partition
        self.assertEqual(extended.name, "sda2")
        self.assertEqual([p.name for p in disk.logical_partitions], ["sda5", "sda6"])
        self.assertEqual(graph.find_device("sda6").region.end, extended.region.end)
        sda3 = graph.find_device("sda3")
        self.assertEqual(sda3.part_type, PartitionType.primary)
        self.assertGreater(sda3.region.start, extended.region.end)

    def test_encryption(self):
        graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 50 GiB
    partition_table: gpt
    partitions:
    - partition:
        size: 20 GiB
        name: sda1
        mount_point: /home
        file_system: xfs
        encryption:
          name: cr_home
          password: secret
    - partition:
        size: 20 GiB
        name: sda2
        encryption:
          password: secret
          file_system: ext4
""")
        luks = graph.find_device("cr_home")
        self.assertEqual(luks.raw_device.name, "sda1")
        self.assertEqual(graph.find_device("sda1").format.type, "luks")
        self.assertEqual(luks.format.type, "xfs")
        self.assertEqual(graph.mountpoints, {"/home": luks})

        self.assertEqual(graph.find_device("cr_sda2").format.type, "ext4")

    def test_lvm(self):
        graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 50 GiB
    partition_table: gpt
    partitions:
    - partition:
        size: 40 GiB
        name: sda1
        id: lvm
- lvm_vg:
    vg_name: system
    extent_size: 8 MiB
    lvm_lvs:
    - lvm_lv:
        lv_name: root
        size: 20 GiB
        file_system: btrfs
        mount_point: /
    - lvm_lv:
        lv_name: swap
        size: 2 GiB
        file_system: swap
    lvm_pvs:
    - lvm_pv:
        blk_device: sda1
""")
        vg = graph.find_device("system")
        self.assertTrue(vg.exists)
        self.assertEqual(vg.pe_size, Size("8 MiB"))
        self.assertEqual([pv.name for pv in vg.pvs], ["sda1"])
        self.assertEqual(graph.find_device("sda1").format.type, "lvmpv")
        self.assertEqual([lv.name for lv in vg.lvs], ["system-root", "system-swap"])
        self.assertEqual(graph.find_device("system-root").format.mountpoint, "/")
        self.assertEqual(graph.find_device("system-swap").format.type, "swap")

    def test_errors(self):
        with self.assertRaises(FactoryError):
            DeviceGraphFactory.from_yaml("- partition:\n    size: 1 GiB\n")

        with self.assertRaises(FactoryError):
            DeviceGraphFactory.from_yaml("- disk:\n    name: sda\n    size: 1 GiB\n"
                                         "    color: blue\n")

        with self.assertRaises(FactoryError):
            DeviceGraphFactory.from_yaml("- disk:\n    size: 1 GiB\n")

        with self.assertRaises(FactoryError):
            DeviceGraphFactory.from_yaml("- disk:\n    name: sda\n    size: 1 GiB\n"
                                         "    partitions:\n    - partition:\n"
                                         "        size: 100 MiB\n")

        with self.assertRaises(FactoryError):
            DeviceGraphFactory.from_yaml("- lvm_vg:\n    vg_name: vg0\n"
                                         "    lvm_pvs:\n    - lvm_pv:\n"
                                         "        blk_device: sdz1\n")

        with self.assertRaises(FactoryError):
            DeviceGraphFactory().build("disk")

    def test_partition_table_and_file_system(self):
        with self.assertRaises(FactoryError):
            DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 10 GiB
    file_system: ext4
    partition_table: gpt
""")

    def test_unexpected_partition_name(self):
        with self.assertRaises(FactoryError):
            DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 10 GiB
    partition_table: gpt
    partitions:
    - partition:
        size: 1 GiB
        name: sda2
""")

    def test_too_big(self):
        with self.assertRaises(FactoryError):
            DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 10 GiB
    partition_table: gpt
    partitions:
    - partition:
        size: 20 GiB
        name: sda1
""")

    def test_check_registry(self):
        fakefactory.check_registry()

        with patch.dict(fakefactory.DEPENDENCIES, {"partition_table": ["partitions"]}):
            with self.assertRaises(FactoryError):
                fakefactory.check_registry()

        with patch.dict(fakefactory.HANDLERS, {"raid": None}):
            with self.assertRaises(FactoryError):
                fakefactory.check_registry()

    def test_existing_graph(self):
        graph = DeviceGraphFactory.from_yaml("- disk:\n    name: sda\n    size: 10 GiB\n")
        same = DeviceGraphFactory.from_yaml("- disk:\n    name: sdb\n    size: 10 GiB\n",
                                            devicegraph=graph)
        self.assertIs(same, graph)
        self.assertEqual([d.name for d in graph.disks], ["sda", "sdb"])
