import sys

from volumectl_cli.clibase import (
    CLIWrapperBase, Command, attribute_type, parse_global_options, regex_type, size_type)
from volumectl_core import constants, utils
from volumectl_core.exceptions import UsageError


class CLIWrapper(CLIWrapperBase):

    def __init__(self, show_hidden=False):
        self.logger = utils.get_logger(level=constants.CLI_LOG_LEVEL)
        self.init_parser(show_hidden)
        self.init_volume()
        self.init_profile()
        self.init_backup()
        self.init_version()
        super().__init__()

    def init_volume(self):
        subparser = self.add_command('volume', 'Volume commands')
        self.init_volume__create(subparser)
        self.init_volume__remove(subparser)
        self.init_volume__inspect(subparser)
        self.init_volume__list(subparser)
        self.init_volume__backup(subparser)

    def _add_create_arguments(self, subcommand, required):
        subcommand.add_argument('--type', help='Volume type', type=str, dest='type', required=required)
        subcommand.add_argument('--capacity', help='Capacity, e.g. 10G, 512MiB or a number of bytes',
                                type=size_type(min=1), dest='capacity', required=required)
        subcommand.add_argument('--iops', help='Provisioned IOPS', type=int, dest='iops', required=False)
        subcommand.add_argument('--user', help='Owner of the volume', type=str, dest='user', required=False)
        subcommand.add_argument('--transport', help='Transport used to attach the volume', type=str,
                                dest='transport', required=False)
        subcommand.add_argument('--access-token', help='Access token passed to the storage backend', type=str,
                                dest='access_token', required=False)
        subcommand.add_argument('--from-backup', help='Restore from a backup, format: OBJ/LABEL',
                                type=regex_type(r'^[^/]+/[^/]+$', 'OBJ/LABEL'), metavar='OBJ/LABEL',
                                dest='from_backup', required=False)
        subcommand.add_argument('--name', help='Name', type=str, dest='name', required=True)
        subcommand.add_argument('--profile', help='Profile to take defaults from', type=str, dest='profile',
                                required=False)
        subcommand.add_argument('--otp', help='One-time password', type=str, dest='otp', required=False)
        subcommand.add_argument('attributes', help='Extra attributes, format: KEY=VALUE', type=attribute_type,
                                metavar='ATTR', nargs='*')

    def init_volume__create(self, subparser):
        subcommand = self.add_sub_command(subparser, 'create', 'Creates a volume')
        self._add_create_arguments(subcommand, required=True)

    def init_volume__remove(self, subparser):
        subcommand = self.add_sub_command(subparser, 'remove', 'Removes a volume', aliases=['rm'])
        subcommand.add_argument('--otp', help='One-time password', type=str, dest='otp', required=False)
        subcommand.add_argument('name', help='Volume name', type=str)

    def init_volume__inspect(self, subparser):
        subcommand = self.add_sub_command(subparser, 'inspect', 'Shows the details of a volume')
        subcommand.add_argument('name', help='Volume name', type=str)

    def init_volume__list(self, subparser):
        self.add_sub_command(subparser, 'list', 'Lists all volumes', aliases=['ls'])

    def init_volume__backup(self, subparser):
        subcommand = self.add_sub_command(subparser, 'backup', 'Starts a backup of a volume')
        subcommand.add_argument('name', help='Volume name', type=str)
        subcommand.add_argument('backup_name', help='Backup name', type=str, metavar='BACKUP-NAME', nargs='?')
        subcommand.add_argument('--s3', help='S3 target of the backup', type=str, dest='s3', required=False)

    def init_profile(self):
        subparser = self.add_command('profile', 'Storage profile commands')
        self.init_profile__create(subparser)
        self.init_profile__remove(subparser)
        self.init_profile__inspect(subparser)
        self.init_profile__list(subparser)

    def init_profile__create(self, subparser):
        subcommand = self.add_sub_command(subparser, 'create', 'Creates a storage profile')
        self._add_create_arguments(subcommand, required=False)

    def init_profile__remove(self, subparser):
        subcommand = self.add_sub_command(subparser, 'remove', 'Removes a storage profile', aliases=['rm'])
        subcommand.add_argument('name', help='Profile name', type=str)

    def init_profile__inspect(self, subparser):
        subcommand = self.add_sub_command(subparser, 'inspect', 'Shows the details of a storage profile')
        subcommand.add_argument('name', help='Profile name', type=str)

    def init_profile__list(self, subparser):
        self.add_sub_command(subparser, 'list', 'Lists all storage profiles', aliases=['ls'])

    def init_backup(self):
        subparser = self.add_command('backup', 'Backup commands')
        self.init_backup__list(subparser)
        self.init_backup__inspect(subparser)
        self.init_backup__remove(subparser)
        self.init_backup__info(subparser)

    def init_backup__list(self, subparser):
        subcommand = self.add_sub_command(subparser, 'list', 'Lists backups', aliases=['ls'])
        subcommand.add_argument('--profile', help='Profile holding the backup target', type=str, dest='profile',
                                required=False)

    def init_backup__inspect(self, subparser):
        subcommand = self.add_sub_command(subparser, 'inspect', 'Shows the details of a backup')
        subcommand.add_argument('--profile', help='Profile holding the backup target', type=str, dest='profile',
                                required=False)
        subcommand.add_argument('name', help='Backup name', type=str)

    def init_backup__remove(self, subparser):
        subcommand = self.add_sub_command(subparser, 'remove', 'Removes a backup', aliases=['rm'])
        subcommand.add_argument('--profile', help='Profile holding the backup target', type=str, dest='profile',
                                required=False)
        subcommand.add_argument('name', help='Backup name', type=str)

    def init_backup__info(self, subparser):
        subcommand = self.add_sub_command(subparser, 'info', 'Shows the backup target information')
        subcommand.add_argument('--profile', help='Profile holding the backup target', type=str, dest='profile',
                                required=False)

    def init_version(self):
        self.add_leaf_command('version', 'Prints the client version')

    def run(self, argv=None):
        argv = sys.argv[1:] if argv is None else list(argv)

        try:
            args = self.parser.parse_args(argv)
        except UsageError as e:
            if help_requested(argv):
                sys.stdout.write(e.help_text)
                return constants.EXIT_OK
            self.print_usage_error(e)
            return constants.EXIT_USAGE

        if getattr(args, 'help', False):
            sys.stdout.write(self.help_text(args.path))
            return constants.EXIT_OK

        command = Command(args.path, args)
        try:
            self.execute(command)
        except UsageError as e:
            self.print_usage_error(e)
            return constants.EXIT_USAGE
        except Exception as e:
            self.logger.debug("Command %s failed", command.name, exc_info=True)
            self.print_error(e)
            return constants.EXIT_FAILURE
        finally:
            if self.connection is not None:
                self.connection.close()

        return constants.EXIT_OK


def help_requested(argv):
    try:
        return bool(getattr(parse_global_options(argv), 'help', False))
    except UsageError:
        return False


def show_hidden_options(argv):
    try:
        verbose = bool(getattr(parse_global_options(argv), 'verbose', False))
    except UsageError:
        verbose = False
    return verbose or utils.get_env_flag(constants.ENV_VERBOSE)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else list(argv)
    cli = CLIWrapper(show_hidden=show_hidden_options(argv))
    sys.exit(cli.run(argv))
