import unittest

from autopart.diskanalyzer import PartitionCategory
from autopart.errors import ConfigurationError
from autopart.proposal.settingsgenerator import SettingsGenerator, Adjustment
from autopart.settings import ProposalSettings, VolumeSpecification, DeleteMode
from autopart.size import Size, UNLIMITED

FEATURES = """
proposal:
  lvm: true
  windows_delete_mode: all
  resize_windows: false
volumes:
- mount_point: /
  fs_type: xfs
  min_size: 5 GiB
  desired_size: 10 GiB
  max_size: unlimited
  max_size_lvm: 30 GiB
  weight: 100
- mount_point: swap
  fs_type: swap
  min_size: 1 GiB
  max_size: 2 GiB
  fstab_options: [defaults]
"""


class VolumeSpecificationTestCase(unittest.TestCase):

    def test_validation(self):
        with self.assertRaises(ConfigurationError):
            VolumeSpecification(fs_type="ext4")

        with self.assertRaises(ConfigurationError):
            VolumeSpecification(mount_point="/", color="blue")

        with self.assertRaises(ConfigurationError):
            VolumeSpecification(mount_point="/", weight=-1)

        with self.assertRaises(ConfigurationError):
            VolumeSpecification(mount_point="/", min_size=Size("10 GiB"),
                                desired_size=Size("5 GiB"))

        with self.assertRaises(ConfigurationError):
            VolumeSpecification(mount_point="/", snapshots_size=Size("1 GiB"),
                                snapshots_percentage=10)

        volume = VolumeSpecification(mount_point="/", min_size=Size("10 GiB"),
                                     max_size=UNLIMITED)
        self.assertTrue(volume.proposed)
        self.assertIsNone(volume.desired_size)
        self.assertEqual(volume.fstab_options, ())

    def test_copy(self):
        volume = VolumeSpecification(mount_point="/", fs_type="btrfs")
        copied = volume.copy(fs_type="xfs")
        self.assertEqual(copied.fs_type, "xfs")
        self.assertEqual(volume.fs_type, "btrfs")
        self.assertTrue(volume.btrfs)
        self.assertFalse(copied.btrfs)

        with self.assertRaises(ConfigurationError):
            volume.copy(weight=-5)

    def test_from_dict(self):
        volume = VolumeSpecification.from_dict({"mount_point": "/srv", "min_size": "2 GiB",
                                                "max_size": "unlimited",
                                                "fstab_options": ["noatime"]})
        self.assertEqual(volume.min_size, Size("2 GiB"))
        self.assertIs(volume.max_size, UNLIMITED)
        self.assertEqual(volume.fstab_options, ("noatime",))

        with self.assertRaises(ConfigurationError):
            VolumeSpecification.from_dict({"mount_point": "/srv", "min_size": "a lot"})


class ProposalSettingsTestCase(unittest.TestCase):

    def test_defaults(self):
        settings = ProposalSettings.defaults()
        self.assertEqual([v.mount_point for v in settings.volumes], ["/", "swap", "/home"])
        self.assertFalse(settings.use_lvm)
        self.assertFalse(settings.use_encryption)
        self.assertTrue(settings.resize_windows)
        self.assertEqual(settings.windows_delete_mode, DeleteMode.ONDEMAND)
        self.assertEqual(settings.lvm_vg_name, "system")

    def test_str(self):
        text = str(ProposalSettings.defaults())
        lines = text.splitlines()
        self.assertTrue(lines[0].startswith("Proposal settings: lvm=False"))
        self.assertEqual(len(lines), 4)
        self.assertEqual(lines[3].strip(),
                         "volume /home: min 10 GiB, desired 20 GiB, max unlimited, weight 40")

    def test_delete_modes(self):
        settings = ProposalSettings(linux_delete_mode="all", other_delete_mode=DeleteMode.NONE)
        self.assertEqual(settings.delete_mode(PartitionCategory.linux), DeleteMode.ALL)
        self.assertEqual(settings.delete_mode(PartitionCategory.other), DeleteMode.NONE)
        self.assertEqual(settings.delete_mode(PartitionCategory.windows), DeleteMode.ONDEMAND)

        with self.assertRaises(ConfigurationError):
            ProposalSettings(linux_delete_mode="sometimes")

    def test_duplicate_mount_points(self):
        volumes = [VolumeSpecification(mount_point="/"), VolumeSpecification(mount_point="/")]
        with self.assertRaises(ConfigurationError):
            ProposalSettings(volumes=volumes)

    def test_with_volume(self):
        settings = ProposalSettings.defaults()
        changed = settings.with_volume("/home", proposed=False)

        self.assertFalse(changed.volume("/home").proposed)
        self.assertTrue(settings.volume("/home").proposed)
        self.assertEqual([v.mount_point for v in changed.proposed_volumes], ["/", "swap"])
        self.assertIs(changed.volume("/"), settings.volume("/"))

        with self.assertRaises(ConfigurationError):
            settings.with_volume("/srv", proposed=False)

    def test_copy(self):
        settings = ProposalSettings.defaults()
        changed = settings.copy(candidate_devices=["sda", "sdb"], encryption_password="secret")
        self.assertEqual(changed.candidate_devices, ("sda", "sdb"))
        self.assertTrue(changed.use_encryption)
        self.assertIsNone(settings.candidate_devices)

        with self.assertRaises(ConfigurationError):
            settings.copy(lvm=True)

    def test_from_yaml(self):
        settings = ProposalSettings.from_yaml(FEATURES)

        self.assertTrue(settings.use_lvm)
        self.assertEqual(settings.windows_delete_mode, DeleteMode.ALL)
        self.assertFalse(settings.resize_windows)
        root = settings.volume("/")
        self.assertEqual(root.min_size, Size("5 GiB"))
        self.assertIs(root.max_size, UNLIMITED)
        self.assertEqual(root.max_size_lvm, Size("30 GiB"))
        self.assertEqual(root.weight, 100)
        self.assertEqual(settings.volume("swap").fstab_options, ("defaults",))

    def test_from_features(self):
        settings = ProposalSettings.from_features({})
        self.assertEqual(settings, ProposalSettings.defaults())

        settings = ProposalSettings.from_features({"proposal": {"resize_windows": False}})
        self.assertFalse(settings.resize_windows)
        self.assertEqual(len(settings.volumes), 3)

        with self.assertRaises(ConfigurationError):
            ProposalSettings.from_features(["/", "swap"])

        with self.assertRaises(ConfigurationError):
            ProposalSettings.from_features({"proposal": {"use_raid": True}})

        with self.assertRaises(ConfigurationError):
            ProposalSettings.from_yaml("proposal: [lvm")


class SettingsGeneratorTestCase(unittest.TestCase):

    def test_default_volumes(self):
        generator = SettingsGenerator(ProposalSettings.defaults())
        settings = list(generator)

        self.assertEqual(len(settings), 2)
        self.assertTrue(settings[0].volume("/home").proposed)
        self.assertFalse(settings[1].volume("/home").proposed)
        self.assertEqual(generator.adjustments, [Adjustment("/home", "proposed", False)])

    def test_disable_order(self):
        volumes = [VolumeSpecification(mount_point="/", fs_type="btrfs", snapshots=True,
                                       snapshots_configurable=True, disable_order=2),
                   VolumeSpecification(mount_point="swap", fs_type="swap", adjust_by_ram=True,
                                       adjust_by_ram_configurable=True, disable_order=1),
                   VolumeSpecification(mount_point="/home", fs_type="xfs",
                                       proposed_configurable=True, disable_order=3),
                   VolumeSpecification(mount_point="/srv", fs_type="xfs",
                                       proposed_configurable=True)]
        generator = SettingsGenerator(ProposalSettings(volumes=volumes))
        settings = list(generator)

        self.assertEqual(len(settings), 4)
        self.assertEqual(generator.adjustments,
                         [Adjustment("swap", "adjust_by_ram", False),
                          Adjustment("/", "snapshots", False),
                          Adjustment("/home", "proposed", False)])
        last = settings[-1]
        self.assertFalse(last.volume("swap").adjust_by_ram)
        self.assertFalse(last.volume("/").snapshots)
        self.assertFalse(last.volume("/home").proposed)
        # volumes without disable order are never touched
        self.assertTrue(last.volume("/srv").proposed)

    def test_nothing_to_adjust(self):
        volumes = [VolumeSpecification(mount_point="/", fs_type="ext4", disable_order=1)]
        self.assertEqual(len(list(SettingsGenerator(ProposalSettings(volumes=volumes)))), 1)
