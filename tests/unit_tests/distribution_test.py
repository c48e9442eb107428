import unittest
from unittest.mock import Mock

from autopart.devicegraph import DeviceGraph
from autopart.devices import PartitionType
from autopart.errors import NoDiskSpaceError, NoMorePartitionSlotError
from autopart.fakefactory import DeviceGraphFactory
from autopart.freespace import Region
from autopart.planned import PlannedPartition
from autopart.proposal.distribution import AssignedSpace, DistributionCalculator
from autopart.proposal.distribution import PartitionsDistribution
from autopart.proposal.partitioncreator import PartitionCreator
from autopart.size import Size, UNLIMITED


def planned(mount_point, min_size, max_size=UNLIMITED, weight=1, **kwargs):
    return PlannedPartition(mount_point=mount_point, fs_type="ext4", min_size=Size(min_size),
                            max_size=max_size if max_size is UNLIMITED else Size(max_size),
                            weight=weight, **kwargs)


class DistributionCalculatorTestCase(unittest.TestCase):

    def setUp(self):
        self.graph = DeviceGraph()
        self.graph.new_disk("sda", Size("10 GiB"))
        self.graph.new_disk("sdb", Size("20 GiB"))

    def test_single_space(self):
        spaces = self.graph.free_spaces(disks=["sda"], label_type="msdos")
        volumes = [planned("/", "5 GiB"), planned("swap", "1 GiB", max_size="2 GiB", weight=0)]
        distribution = DistributionCalculator(volumes).best_distribution(spaces)

        self.assertEqual(distribution.spaces_count, 1)
        space = distribution.spaces[0]
        self.assertEqual(space.disk_name, "sda")
        self.assertEqual(space.num_logical, 0)
        self.assertEqual(space.partition_type, None)
        self.assertTrue(space.valid())

    def test_pinned_disk(self):
        spaces = self.graph.free_spaces(label_type="gpt")
        volumes = [planned("/", "5 GiB", disk="sdb")]
        distribution = DistributionCalculator(volumes).best_distribution(spaces)

        self.assertEqual([s.disk_name for s in distribution.spaces], ["sdb"])

    def test_fewer_gaps(self):
        spaces = self.graph.free_spaces(label_type="gpt")
        volumes = [planned("/", "5 GiB"), planned("/home", "5 GiB")]
        distribution = DistributionCalculator(volumes).best_distribution(spaces)

        # using both disks leaves no free space behind
        self.assertEqual(distribution.spaces_count, 2)
        self.assertEqual(distribution.gaps_total_size, Size(0))

    def test_impossible(self):
        spaces = self.graph.free_spaces(label_type="gpt")
        calculator = DistributionCalculator([planned("/", "25 GiB")])
        with self.assertRaises(NoDiskSpaceError):
            calculator.best_distribution(spaces)

        calculator = DistributionCalculator([planned("/", "15 GiB", disk="sda")])
        with self.assertRaises(NoDiskSpaceError):
            calculator.best_distribution(spaces)

    def test_impossible_after_rounding(self):
        space = Mock(disk_name="sda", disk_size=Size("2 MiB"), align_grain=Size("1 MiB"))
        volumes = [planned("/a", "600 KiB"), planned("/b", "600 KiB"), planned("/c", "600 KiB")]

        # 1800 KiB fit in 2 MiB, three grains do not
        with self.assertRaisesRegex(NoDiskSpaceError, "not enough free space"):
            DistributionCalculator(volumes).best_distribution([space])

        volumes = [planned("/a", "600 KiB", disk="sda"), planned("/b", "600 KiB", disk="sda")]
        self.assertFalse(DistributionCalculator(volumes)._impossible(volumes, [space]))
        volumes.append(planned("/c", "600 KiB", disk="sda"))
        self.assertTrue(DistributionCalculator(volumes)._impossible(volumes, [space]))

    def test_max_start_offset(self):
        graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 100 GiB
    partition_table: gpt
    partitions:
    - partition:
        size: 50 GiB
        name: sda1
        file_system: xfs
""")
        spaces = graph.free_spaces()
        calculator = DistributionCalculator([planned(None, "1 MiB",
                                                     max_start_offset=Size("16 MiB"))])
        with self.assertRaises(NoDiskSpaceError):
            calculator.best_distribution(spaces)

        calculator = DistributionCalculator([planned(None, "1 MiB",
                                                     max_start_offset=Size("2 TiB"))])
        self.assertEqual(calculator.best_distribution(spaces).spaces_count, 1)


class AssignedSpaceTestCase(unittest.TestCase):

    def test_enforced_last(self):
        graph = DeviceGraph()
        graph.new_disk("sda", Size("10 MiB") + Size(512))
        space = graph.free_spaces(label_type="msdos")[0]
        self.assertEqual(space.disk_size, Size("9 MiB") + Size(512))

        first = planned("/a", Size("5 MiB") + Size(256))
        second = planned("/b", "4 MiB")
        assigned = AssignedSpace(space, [first, second])

        # only fits if /a takes the unaligned end of the space
        self.assertIs(assigned.enforced_last, first)
        self.assertIs(assigned.volumes[-1], first)
        self.assertTrue(assigned.valid())

        sizes = dict((v.mount_point, v.disk_size) for v in assigned.distribute())
        self.assertEqual(sizes["/b"], Size("4 MiB"))
        self.assertEqual(sizes["/a"], Size("5 MiB") + Size(512))


class LogicalPartitionsTestCase(unittest.TestCase):

    def setUp(self):
        self.graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 100 GiB
    partition_table: msdos
    partitions:
    - partition:
        size: 10 GiB
        name: sda1
        file_system: ext4
    - partition:
        size: 10 GiB
        name: sda2
        file_system: ext4
    - partition:
        size: 10 GiB
        name: sda3
        file_system: ext4
""")

    def test_new_extended_partition(self):
        spaces = self.graph.free_spaces()
        volumes = [planned("/", "10 GiB"), planned("/home", "10 GiB")]
        distribution = DistributionCalculator(volumes).best_distribution(spaces)

        # one primary slot left, both volumes become logical
        self.assertEqual(distribution.spaces[0].num_logical, 2)

        result = PartitionCreator(self.graph).create_partitions(distribution)
        disk = result.devicegraph.find_device("sda")
        self.assertEqual(disk.extended_partition.name, "sda4")
        self.assertEqual([p.name for p in disk.logical_partitions], ["sda5", "sda6"])
        self.assertEqual(list(result.devices_map), ["sda5", "sda6"])
        self.assertEqual(disk.logical_partitions[-1].region.end,
                         disk.extended_partition.region.end)

        # the original graph is untouched
        self.assertIsNone(self.graph.find_device("sda").extended_partition)

    def test_one_primary_slot(self):
        spaces = self.graph.free_spaces()
        distribution = DistributionCalculator([planned("/", "10 GiB")]).best_distribution(spaces)
        self.assertEqual(distribution.spaces[0].num_logical, 0)

        result = PartitionCreator(self.graph).create_partitions(distribution)
        partition = result.devicegraph.find_device("sda4")
        self.assertEqual(partition.part_type, PartitionType.primary)
        self.assertEqual(partition.size, Size("70 GiB") - Size("1 MiB"))

    def test_no_more_slots(self):
        graph = self.graph.copy()
        disk = graph.find_device("sda")
        space = graph.free_spaces()[0]
        graph.new_partition(disk, Region(space.region.start, 2048, disk.block_size))
        space = graph.free_spaces()[0]
        with self.assertRaises(NoMorePartitionSlotError):
            PartitionsDistribution({space: [planned("/", "1 GiB")]})
