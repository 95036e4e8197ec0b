import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Union
from svctl.local.config import CtlSettings
from svctl.local.supervisor import config_utils, services, shutdown
from svctl.local.supervisor.persistence import RunningConfig

log = logging.getLogger(__name__)


class ServiceManager:
    """
    Runs supervisor commands against one product's runit services and owns
    the lifecycle procedures (graceful-kill, cleanse, uninstall) built on top
    of them.
    """

    def __init__(self, settings: CtlSettings, running_config: Optional[RunningConfig] = None) -> None:
        """
        :param settings: The product's settings.
        :param running_config: The running config loaded at startup. Loaded from
            the settings' running config path when omitted.
        """
        self.settings = settings
        if running_config is None:
            running_config = RunningConfig.load(settings.running_config_path, settings.package_key)
        self.running_config = running_config

    #* --- Service Directory ---
    def get_all_services(self) -> List[str]:
        """Service names under the supervision root, sorted."""
        return services.list_services(self.settings.SV_PATH)

    def service_enabled(self, service: str) -> bool:
        return services.is_enabled(self.settings.SERVICE_PATH, service)

    def pid_file_path(self, service: str) -> Path:
        return self.settings.pid_file_path(service)

    def global_service_command_permitted(self, sv_cmd: str, service: str) -> bool:
        """Applies the broadcast filter policy with this product's running config."""
        return services.permitted(sv_cmd, service, self.running_config, self.settings.SINGLETON_SERVICES)

    #* --- Command Execution ---
    def run_command(self, args: Sequence[Union[str, Path]]) -> int:
        """
        Runs an external command in the foreground and returns its exit status.

        :param args: The program and its arguments.
        :return: The exit status, or 127 if the program could not be executed.
        """
        argv = [str(arg) for arg in args]
        log.debug(f"Running: {' '.join(argv)}")
        try:
            return subprocess.run(argv, check=False).returncode
        except OSError as e:
            log.error(f"Failed to execute '{argv[0]}': {e}")
            return self.settings.UNEXECUTABLE_COMMAND_STATUS

    def run_service_command(self, service: str, sv_cmd: str) -> int:
        """Invokes the service's supervisor entrypoint (`<base>/init/<service> <verb>`)."""
        return self.run_command([self.settings.init_script(service), sv_cmd])

    def run_sv_command_for_service(self, sv_cmd: str, service: str) -> int:
        """
        Runs a supervisor verb for one service.

        :return: The entrypoint's exit status, or 0 if the service is disabled.
        """
        if self.service_enabled(service):
            return self.run_service_command(service, sv_cmd)

        if sv_cmd == "status" and self.settings.VERBOSE:
            log.info(f"{service} disabled")
        return 0

    def run_sv_command(self, sv_cmd: str, service: Optional[str] = None) -> int:
        """
        Runs a supervisor verb for the named service, or for every permitted
        service when none is named.

        :return: The service's status, or the unclamped sum over all services.
        """
        if service is not None:
            return self.run_sv_command_for_service(sv_cmd, service)

        exit_status = 0
        for service_name in self.get_all_services():
            if self.global_service_command_permitted(sv_cmd, service_name):
                exit_status += self.run_sv_command_for_service(sv_cmd, service_name)
        return exit_status

    #* --- Lifecycle Procedures ---
    def graceful_kill(self, service: Optional[str] = None) -> int:
        return shutdown.graceful_kill(self, service)

    def uninstall(self) -> int:
        return shutdown.uninstall(self)

    def cleanse(self, confirmed: bool = False) -> int:
        return shutdown.cleanse(self, confirmed)

    def show_config(self) -> int:
        return config_utils.show_config(self)

    def reconfigure(self, out: Optional[TextIO] = None) -> int:
        return config_utils.reconfigure(self, out)
