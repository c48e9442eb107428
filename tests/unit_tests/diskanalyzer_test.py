import unittest

from autopart.diskanalyzer import DiskAnalyzer, PartitionCategory
from autopart.fakefactory import DeviceGraphFactory
from autopart.platform import get_platform

DISKS = """
- disk:
    name: sda
    size: 100 GiB
    partition_table: msdos
    partitions:
    - partition:
        size: 40 GiB
        name: sda1
        id: ntfs
        file_system: ntfs
        windows_system: true
    - partition:
        size: 20 GiB
        name: sda2
        id: linux
        file_system: ext4
    - partition:
        size: 10 GiB
        name: sda3
        id: dos32
        file_system: vfat
    - partition:
        size: 2 GiB
        name: sda4
        id: swap
        file_system: swap
- disk:
    name: sdb
    size: 8 GiB
    installation_media: true
"""


class DiskAnalyzerTestCase(unittest.TestCase):

    def setUp(self):
        self.graph = DeviceGraphFactory.from_yaml(DISKS)

    def _names(self, partitions):
        return [p.name for p in partitions]

    def test_categories(self):
        analyzer = DiskAnalyzer(self.graph, get_platform("x86"))
        self.assertEqual(self._names(analyzer.windows_partitions()), ["sda1"])
        self.assertEqual(self._names(analyzer.linux_partitions()), ["sda2", "sda4"])
        self.assertEqual(self._names(analyzer.other_partitions("sda")), ["sda3"])
        self.assertEqual(self._names(analyzer.swap_partitions()), ["sda4"])
        self.assertEqual(analyzer.efi_partitions(), [])
        self.assertEqual(analyzer.linux_partitions("sdb"), [])

    def test_no_windows_architecture(self):
        analyzer = DiskAnalyzer(self.graph, get_platform("ppc"))
        self.assertFalse(analyzer.windows_architecture)
        self.assertEqual(analyzer.windows_partitions(), [])
        sda1 = self.graph.find_device("sda1")
        self.assertEqual(analyzer.category(sda1), PartitionCategory.other)

        # without a platform any architecture is assumed to run Windows
        self.assertTrue(DiskAnalyzer(self.graph).windows_architecture)

    def test_candidate_disks(self):
        analyzer = DiskAnalyzer(self.graph)
        self.assertEqual([d.name for d in analyzer.installation_media], ["sdb"])
        self.assertEqual([d.name for d in analyzer.candidate_disks], ["sda"])

        graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sdb
    size: 8 GiB
    installation_media: true
""")
        self.assertEqual([d.name for d in DiskAnalyzer(graph).candidate_disks], ["sdb"])
