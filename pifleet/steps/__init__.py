from .step_10_install_packages import InstallPackagesStep
from .step_20_ensure_users import EnsureUsersStep
from .step_30_restore_home_files import RestoreHomeFilesStep
from .step_40_install_crontabs import InstallCrontabsStep
from .step_50_copy_custom_units import CopyCustomUnitsStep
from .step_60_enable_services import EnableServicesStep
from .step_70_stage_mounts import StageMountsStep
from .step_80_apply_firewall import ApplyFirewallStep
from .step_85_restore_ssh_host_keys import RestoreSshHostKeysStep
from .step_90_restore_etc import RestoreEtcStep

__all__ = [
    "InstallPackagesStep",
    "EnsureUsersStep",
    "RestoreHomeFilesStep",
    "InstallCrontabsStep",
    "CopyCustomUnitsStep",
    "EnableServicesStep",
    "StageMountsStep",
    "ApplyFirewallStep",
    "RestoreSshHostKeysStep",
    "RestoreEtcStep",
]
