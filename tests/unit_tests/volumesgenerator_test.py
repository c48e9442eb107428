import unittest

from autopart.devicegraph import DeviceGraph
from autopart.errors import ConfigurationError
from autopart.fakefactory import DeviceGraphFactory
from autopart.planned import PlannedLv, PlannedPartition, Target
from autopart.platform import get_platform
from autopart.proposal.volumesgenerator import VolumesGenerator
from autopart.settings import ProposalSettings, VolumeSpecification
from autopart.size import Size, UNLIMITED


def root_volume(**kwargs):
    values = dict(mount_point="/", fs_type="ext4", min_size=Size("5 GiB"),
                  desired_size=Size("10 GiB"), max_size=UNLIMITED, weight=60)
    values.update(kwargs)
    return VolumeSpecification(**values)


def home_volume(**kwargs):
    values = dict(mount_point="/home", fs_type="xfs", min_size=Size("10 GiB"),
                  desired_size=Size("20 GiB"), max_size=UNLIMITED, weight=40,
                  fallback_for_min_size="/", fallback_for_desired_size="/",
                  fallback_for_max_size="/", fallback_for_weight="/")
    values.update(kwargs)
    return VolumeSpecification(**values)


def swap_volume(**kwargs):
    values = dict(mount_point="swap", fs_type="swap", min_size=Size("1 GiB"),
                  desired_size=Size("2 GiB"), max_size=Size("2 GiB"), weight=0)
    values.update(kwargs)
    return VolumeSpecification(**values)


class VolumesGeneratorTestCase(unittest.TestCase):

    def setUp(self):
        self.graph = DeviceGraph()
        self.graph.new_disk("sda", Size("100 GiB"))
        self.platform = get_platform("x86", ram_size=Size("8 GiB"))
        self.platform.set_default_disklabel_type("msdos")

    def _planned(self, volumes, target=Target.desired, graph=None, **settings):
        settings = ProposalSettings(volumes=volumes, candidate_devices=["sda"], **settings)
        generator = VolumesGenerator(settings, graph or self.graph, self.platform)
        planned = generator.planned_devices(target, root_disk="sda")
        return dict((p.mount_point, p) for p in planned)

    def test_proposed_volumes(self):
        planned = self._planned([root_volume(), home_volume()])

        self.assertEqual(sorted(planned), ["/", "/home"])
        root = planned["/"]
        self.assertIsInstance(root, PlannedPartition)
        self.assertEqual(root.min_size, Size("5 GiB"))
        self.assertEqual(root.desired_size, Size("10 GiB"))
        self.assertEqual(root.weight, 60)
        self.assertEqual(root.target, Target.desired)
        self.assertEqual(root.disk, "sda")
        self.assertIsNone(planned["/home"].disk)

    def test_not_proposed_volume_falls_back(self):
        planned = self._planned([root_volume(), home_volume(proposed=False)])

        self.assertEqual(list(planned), ["/"])
        root = planned["/"]
        self.assertEqual(root.min_size, Size("15 GiB"))
        self.assertEqual(root.desired_size, Size("30 GiB"))
        self.assertIs(root.max_size, UNLIMITED)
        self.assertEqual(root.weight, 100)

    def test_unset_value_falls_back(self):
        var = VolumeSpecification(mount_point="/var", fs_type="xfs",
                                  fallback_for_min_size="/", fallback_for_weight="/")
        planned = self._planned([root_volume(), var])

        self.assertEqual(planned["/var"].min_size, Size("5 GiB"))
        self.assertEqual(planned["/var"].weight, 60)
        # no fallback for the max size
        self.assertIs(planned["/var"].max_size, UNLIMITED)
        # /var is proposed, so "/" keeps its own sizes
        self.assertEqual(planned["/"].min_size, Size("5 GiB"))

    def test_invalid_fallbacks(self):
        with self.assertRaises(ConfigurationError):
            self._planned([root_volume(fallback_for_min_size="/home"), home_volume()])

        with self.assertRaises(ConfigurationError):
            self._planned([root_volume(fallback_for_weight="/srv")])

    def test_adjust_by_ram(self):
        planned = self._planned([root_volume(), swap_volume(adjust_by_ram=True)])

        swap = planned["swap"]
        self.assertEqual(swap.min_size, Size("8 GiB"))
        self.assertEqual(swap.desired_size, Size("8 GiB"))
        self.assertEqual(swap.max_size, Size("8 GiB"))

        planned = self._planned([root_volume(), swap_volume()])
        self.assertEqual(planned["swap"].max_size, Size("2 GiB"))

    def test_snapshots(self):
        root = root_volume(fs_type="btrfs", snapshots=True, snapshots_percentage=50)
        planned = self._planned([root])
        self.assertEqual(planned["/"].min_size, Size("7.5 GiB"))
        self.assertEqual(planned["/"].desired_size, Size("15 GiB"))
        self.assertIs(planned["/"].max_size, UNLIMITED)
        self.assertTrue(planned["/"].snapshots)

        root = root_volume(fs_type="btrfs", snapshots=True, snapshots_size=Size("5 GiB"))
        planned = self._planned([root])
        self.assertEqual(planned["/"].min_size, Size("10 GiB"))

        # snapshots only apply to btrfs
        root = root_volume(snapshots=True, snapshots_size=Size("5 GiB"))
        planned = self._planned([root])
        self.assertEqual(planned["/"].min_size, Size("5 GiB"))
        self.assertFalse(planned["/"].snapshots)

    def test_btrfs_default_subvolume(self):
        root = root_volume(fs_type="btrfs", btrfs_default_subvolume="@")
        self.assertEqual(self._planned([root])["/"].default_subvolume, "@")

        planned = self._planned([root], use_lvm=True)
        self.assertIsInstance(planned["/"], PlannedLv)
        self.assertEqual(planned["/"].default_subvolume, "@")

        # only btrfs has subvolumes
        root = root_volume(btrfs_default_subvolume="@")
        self.assertIsNone(self._planned([root])["/"].default_subvolume)

    def test_lvm(self):
        boot = VolumeSpecification(mount_point="/boot", fs_type="ext4",
                                   min_size=Size("512 MiB"), max_size=Size("1 GiB"))
        root = root_volume(max_size=Size("20 GiB"), max_size_lvm=Size("50 GiB"))
        planned = self._planned([root, boot], use_lvm=True)

        self.assertIsInstance(planned["/"], PlannedLv)
        self.assertEqual(planned["/"].lv_name, "root")
        self.assertEqual(planned["/"].max_size, Size("50 GiB"))
        self.assertIsInstance(planned["/boot"], PlannedPartition)

        planned = self._planned([root, boot])
        self.assertEqual(planned["/"].max_size, Size("20 GiB"))

    def test_encryption(self):
        planned = self._planned([root_volume()], encryption_password="secret")

        self.assertTrue(planned["/"].encrypt)
        # the firmware cannot read the encrypted root
        self.assertIn("/boot", planned)
        self.assertFalse(planned["/boot"].encrypt)

    def test_boot_requirements(self):
        self.platform = get_platform("x86")
        self.assertEqual(self.platform.default_disklabel_type, "gpt")
        settings = ProposalSettings(volumes=[root_volume()], candidate_devices=["sda"])
        planned = VolumesGenerator(settings, self.graph, self.platform).planned_devices(
            Target.min, root_disk="sda")

        self.assertEqual(len(planned), 2)
        self.assertEqual(planned[0].min_valid_disk_size(), Size("5 GiB"))
        # the BIOS boot partition goes after the volumes
        self.assertEqual(planned[1].fs_type, "biosboot")
        self.assertEqual(planned[1].disk, "sda")

    def test_reuse_swap(self):
        graph = DeviceGraphFactory.from_yaml("""
- disk:
    name: sda
    size: 100 GiB
    partition_table: msdos
    partitions:
    - partition:
        size: 4 GiB
        name: sda1
        id: swap
        file_system: swap
    - partition:
        size: 2 GiB
        name: sda2
        id: swap
        file_system: swap
    - partition:
        size: 1 GiB
        name: sda3
        id: swap
        file_system: swap
""")
        planned = self._planned([root_volume(), swap_volume()], graph=graph)
        # the smallest swap big enough for the desired size
        self.assertEqual(planned["swap"].reuse, "sda2")
        self.assertEqual(planned["swap"].min_valid_disk_size(), Size(0))

        planned = self._planned([root_volume(), swap_volume()], target=Target.min, graph=graph)
        self.assertEqual(planned["swap"].reuse, "sda3")

        planned = self._planned([root_volume(), swap_volume()], graph=graph, use_lvm=True)
        self.assertIsNone(planned["swap"].reuse)
