import unittest

from autopart.devices import PartitionId
from autopart.fakefactory import DeviceGraphFactory
from autopart.planned import PlannedLv, Target
from autopart.proposal.lvmcreator import LvmHelper, LvmCreator, available_name
from autopart.size import Size, UNLIMITED


def planned_lv(mount_point, min_size, desired_size=None, max_size=UNLIMITED, weight=0):
    return PlannedLv(mount_point=mount_point, fs_type="ext4", min_size=Size(min_size),
                     desired_size=Size(desired_size or min_size),
                     max_size=max_size if max_size is UNLIMITED else Size(max_size),
                     weight=weight)


class AvailableNameTestCase(unittest.TestCase):

    def test_available_name(self):
        self.assertEqual(available_name("system", []), "system")
        self.assertEqual(available_name("system", ["sda", "system"]), "system0")
        self.assertEqual(available_name("system", ["system", "system0"]), "system1")


class LvmHelperTestCase(unittest.TestCase):

    def setUp(self):
        self.lvs = [planned_lv("/", "5 GiB", "10 GiB", weight=60),
                    planned_lv("swap", "1 GiB", "2 GiB", max_size="2 GiB")]

    def test_planned_pv(self):
        pv = LvmHelper(self.lvs).planned_pv(Target.desired)
        self.assertTrue(pv.lvm_pv)
        self.assertEqual(pv.partition_id, PartitionId.lvm)
        self.assertEqual(pv.min_size, Size("12 GiB") + Size("1 MiB"))
        self.assertIs(pv.max_size, UNLIMITED)
        self.assertEqual(pv.weight, 60)
        self.assertFalse(pv.encrypt)

        pv = LvmHelper(self.lvs).planned_pv(Target.min)
        self.assertEqual(pv.min_size, Size("6 GiB") + Size("1 MiB"))

    def test_limited_pv(self):
        lvs = [planned_lv("/", "5 GiB", max_size="10 GiB", weight=1)]
        pv = LvmHelper(lvs).planned_pv(Target.desired)
        self.assertEqual(pv.max_size, Size("10 GiB") + Size("1 MiB"))

    def test_extents_rounding(self):
        lvs = [planned_lv("/", Size("5 GiB") + Size("1 MiB"))]
        pv = LvmHelper(lvs).planned_pv(Target.desired)
        self.assertEqual(pv.min_size, Size("5 GiB") + Size("5 MiB"))

    def test_encrypted_pv(self):
        pv = LvmHelper(self.lvs, encryption_password="secret").planned_pv(Target.desired)
        self.assertTrue(pv.encrypt)
        self.assertEqual(pv.min_size, Size("12 GiB") + Size("17 MiB"))

    def test_no_logical_volumes(self):
        self.assertIsNone(LvmHelper([]).planned_pv(Target.desired))


class LvmCreatorTestCase(unittest.TestCase):

    def setUp(self):
        self.graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 50 GiB
    partition_table: gpt
    partitions:
    - partition:
        size: 12289 MiB
        name: sda1
        id: lvm
    - partition:
        size: 4097 MiB
        name: sda2
        id: lvm
""")

    def test_create_volumes(self):
        lvs = [planned_lv("/", "5 GiB", weight=1),
               planned_lv("swap", "2 GiB", max_size="2 GiB")]
        devices_map = LvmCreator(self.graph).create_volumes(lvs, [self.graph.find_device("sda1")])

        self.assertEqual(list(devices_map), ["system-root", "system-swap"])
        vg = self.graph.find_device("system")
        self.assertEqual(vg.size, Size("12 GiB"))
        self.assertEqual(self.graph.find_device("system-root").size, Size("10 GiB"))
        self.assertEqual(self.graph.find_device("system-swap").size, Size("2 GiB"))
        self.assertEqual(devices_map["system-root"].disk_size, Size("10 GiB"))
        self.assertEqual(self.graph.find_device("sda1").format.type, "lvmpv")

        # the name of the first group is taken
        lvs = [PlannedLv(min_size=Size("1 GiB")), PlannedLv(min_size=Size("1 GiB"))]
        devices_map = LvmCreator(self.graph).create_volumes(lvs, [self.graph.find_device("sda2")])
        self.assertEqual(list(devices_map), ["system0-lv", "system0-lv0"])

    def test_vg_name(self):
        lvs = [planned_lv("/", "5 GiB", weight=1)]
        LvmCreator(self.graph, vg_name="vg0").create_volumes(lvs, [self.graph.find_device("sda1")])
        self.assertEqual([vg.name for vg in self.graph.vgs], ["vg0"])
        self.assertEqual(self.graph.find_device("vg0-root").size, Size("12 GiB"))

    def test_no_logical_volumes(self):
        self.assertEqual(LvmCreator(self.graph).create_volumes([], []), {})
        self.assertEqual(self.graph.vgs, [])
