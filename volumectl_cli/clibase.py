#!/usr/bin/env python
# PYTHON_ARGCOMPLETE_OK

import argparse
import logging
import re
import sys

import argcomplete

from volumectl_core import constants, formatter, utils
from volumectl_core.api_client import APIConnection, ResourceClients
from volumectl_core.config import GlobalConfig
from volumectl_core.exceptions import TransportFailure, UsageError, VolumeCtlException


def size_type(min=None, max=None):
    def f(arg):
        size = utils.parse_size(arg)

        if size == -1:
            raise argparse.ArgumentTypeError(f"Invalid size '{arg}' passed")
        elif min is not None and size < min:
            raise argparse.ArgumentTypeError(f"Size must be larger than {utils.humanbytes(min)}")
        elif max is not None and size > max:
            raise argparse.ArgumentTypeError(f"Size must be smaller than {utils.humanbytes(max)}")

        return size

    return f


def regex_type(regex, expected=None):
    def f(arg):
        if re.match(regex, arg) is not None:
            return arg
        else:
            raise argparse.ArgumentTypeError(
                f"Argument '{arg}' invalid: expected {expected}" if expected else
                f"Argument '{arg}' invalid: does not match regex ({regex})")

    return f


def credentials_type(arg):
    user, sep, password = arg.partition(':')
    if not sep or not user:
        raise argparse.ArgumentTypeError(f"Credentials '{arg}' invalid: expected USER:PASS")
    return user, password


def attribute_type(arg):
    key, sep, value = arg.partition('=')
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Attribute '{arg}' invalid: expected KEY=VALUE")
    return key, value


class CLIArgumentParser(argparse.ArgumentParser):
    """Parser raising UsageError instead of exiting the process."""

    def error(self, message):
        raise UsageError(message, prog=self.prog, usage=self.format_usage(), help_text=self.format_help())


def add_global_options(parser, show_hidden=False):
    """Attach the options every node of the command tree inherits.

    Defaults are suppressed so a value given above a subcommand is not
    overwritten while the subcommand parses; GlobalConfig fills them in.
    """
    def hidden(text):
        return text if show_hidden else argparse.SUPPRESS

    parser.add_argument('-h', '--help', help='Show this help message and exit', dest='help',
                        action='store_true', default=argparse.SUPPRESS)
    parser.add_argument('--verbose', help='Print more details, show hidden options in help', dest='verbose',
                        action='store_true', default=argparse.SUPPRESS)
    parser.add_argument('--debug', help='Print debug messages', dest='debug',
                        action='store_true', default=argparse.SUPPRESS)
    parser.add_argument('-R', '--raw', help='Print the raw response instead of formatted output', dest='raw',
                        action='store_true', default=argparse.SUPPRESS)
    parser.add_argument('--yaml', help='Print the raw response as YAML', dest='yaml',
                        action='store_true', default=argparse.SUPPRESS)
    parser.add_argument('--machine', help=hidden('Print parseable JSON output'), dest='machine',
                        action='store_true', default=argparse.SUPPRESS)
    parser.add_argument('--api-proto', help=hidden(f'API protocol, default: {constants.DEFAULT_API_PROTO}'),
                        type=str, choices=['http', 'https'], dest='api_proto', default=argparse.SUPPRESS)
    parser.add_argument('--api-host', help=hidden(f'API host, default: {constants.DEFAULT_API_HOST}'),
                        type=str, dest='api_host', default=argparse.SUPPRESS)
    parser.add_argument('--api-port', help=hidden(f'API port, default: {constants.DEFAULT_API_PORT}'),
                        type=int, dest='api_port', default=argparse.SUPPRESS)
    parser.add_argument('--api-url', help=hidden('API URL, replaces protocol, host and port'),
                        type=str, dest='api_url', default=argparse.SUPPRESS)
    parser.add_argument('--api-token', help=hidden('Bearer token for the API'),
                        type=str, dest='api_token', default=argparse.SUPPRESS)
    parser.add_argument('-u', help=hidden('Basic auth credentials'), metavar='USER:PASS',
                        type=credentials_type, dest='basic_auth', default=argparse.SUPPRESS)
    parser.add_argument('-k', help=hidden('Ignore TLS certificate errors'), dest='insecure',
                        action='store_true', default=argparse.SUPPRESS)
    return parser


def parse_global_options(argv):
    """Resolve only the global options, leaving everything else aside."""
    parser = add_global_options(CLIArgumentParser(add_help=False, allow_abbrev=False), show_hidden=True)
    args, _ = parser.parse_known_args(argv)
    return args


class Command:
    """A resolved leaf of the command tree and everything built for it."""

    def __init__(self, path, args, config=None):
        self.path = tuple(path)
        self.args = args
        self.config = config
        self.clients = None
        self.params = None
        self.result = None

    @property
    def name(self):
        return " ".join(self.path)

    @property
    def resource(self):
        return self.path[0]

    @property
    def action(self):
        return self.path[-1]

    @property
    def handler(self):
        return "__".join(self.path) if len(self.path) > 1 else self.path[0]

    @property
    def needs_api(self):
        return self.resource != "version"

    def param(self, key):
        if self.params and key in self.params:
            return self.params[key]
        return getattr(self.args, key, None)

    def __repr__(self):
        return f"<Command {self.name!r} params={self.params!r}>"


class CLIWrapperBase:

    def __init__(self):
        argcomplete.autocomplete(self.parser)

    def init_parser(self, show_hidden=False):
        self.show_hidden = show_hidden
        self.parsers = {}
        self.global_parser = add_global_options(
            argparse.ArgumentParser(add_help=False, allow_abbrev=False), show_hidden)
        self.parser = CLIArgumentParser(
            prog=constants.COMMAND_NAME, description='Volume management CLI', add_help=False,
            allow_abbrev=False, parents=[self.global_parser])
        self.subparser = self.parser.add_subparsers(dest='command', metavar='<command>', required=True)
        self.parsers[()] = self.parser
        self.connection = None
        self.clients = None

    def _add_parser(self, parent_parser, command, help, aliases=None, usage=None):
        return parent_parser.add_parser(
            command, description=help, help=help, aliases=aliases or [], usage=usage,
            parents=[self.global_parser], add_help=False, allow_abbrev=False)

    def add_command(self, command, help, aliases=None):
        namespace = self._add_parser(self.subparser, command, help, aliases)
        self.parsers[(command,)] = namespace
        return namespace.add_subparsers(dest=command, metavar='<command>', required=True)

    def add_sub_command(self, parent_parser, command, help, aliases=None, usage=None):
        path = (parent_parser.dest, command)
        subcommand = self._add_parser(parent_parser, command, help, aliases, usage)
        subcommand.set_defaults(path=path)
        self.parsers[path] = subcommand
        return subcommand

    def add_leaf_command(self, command, help):
        subcommand = self._add_parser(self.subparser, command, help)
        subcommand.set_defaults(path=(command,))
        self.parsers[(command,)] = subcommand
        return subcommand

    def help_text(self, path):
        while path not in self.parsers:
            path = path[:-1]
        return self.parsers[path].format_help()

    def execute(self, command):
        """Run the operation of a resolved leaf, then display its result.

        Any failure leaves with the command attached, so the caller can
        report which command failed and what it had already built.
        """
        try:
            command.config = GlobalConfig.from_args(command.args)
            if command.config.debug:
                logging.getLogger().setLevel(logging.DEBUG)
            if command.needs_api:
                self.connection = APIConnection(command.config)
                self.clients = ResourceClients(self.connection)
                command.clients = self.clients
                self.connection.connect()
            command.result = getattr(self, command.handler)(command)
            formatter.display(command.result, command.config, command)
        except KeyboardInterrupt as e:
            raise TransportFailure("Interrupted", command=command) from e
        except Exception as e:
            e.command = command
            raise
        return command

    def _create_params(self, args):
        return utils.compact_params({
            "name": args.name,
            "type": args.type,
            "capacity": args.capacity,
            "iops": args.iops,
            "user": args.user,
            "transport": args.transport,
            "access_token": args.access_token,
            "from_backup": args.from_backup,
            "profile": args.profile,
            "otp": args.otp,
            "attributes": dict(args.attributes) if args.attributes else None,
        })

    def volume__create(self, command):
        command.params = self._create_params(command.args)
        return command.clients.volume.create(command.params)

    def volume__remove(self, command):
        command.params = utils.compact_params({"name": command.args.name, "otp": command.args.otp})
        return command.clients.volume.delete(command.params)

    def volume__inspect(self, command):
        command.params = {"name": command.args.name}
        return command.clients.volume.inspect(command.params)

    def volume__list(self, command):
        command.params = {}
        return command.clients.volume.list(command.params)

    def volume__backup(self, command):
        args = command.args
        command.params = utils.compact_params({"name": args.name, "backup": args.backup_name, "s3": args.s3})
        return command.clients.volume.backup(command.params)

    def profile__create(self, command):
        command.params = self._create_params(command.args)
        return command.clients.profile.create(command.params)

    def profile__remove(self, command):
        command.params = {"name": command.args.name}
        return command.clients.profile.delete(command.params)

    def profile__inspect(self, command):
        command.params = {"name": command.args.name}
        return command.clients.profile.inspect(command.params)

    def profile__list(self, command):
        command.params = {}
        return command.clients.profile.list(command.params)

    def backup__list(self, command):
        command.params = utils.compact_params({"profile": command.args.profile})
        return command.clients.backup.list(command.params)

    def backup__inspect(self, command):
        command.params = utils.compact_params({"name": command.args.name, "profile": command.args.profile})
        return command.clients.backup.inspect(command.params)

    def backup__remove(self, command):
        command.params = utils.compact_params({"name": command.args.name, "profile": command.args.profile})
        return command.clients.backup.delete(command.params)

    def backup__info(self, command):
        command.params = utils.compact_params({"profile": command.args.profile})
        return command.clients.backup.info(command.params)

    def version(self, command):
        command.params = {}
        return {"version": utils.get_env_var(constants.ENV_VERSION) or constants.VERSION}

    def print_usage_error(self, error, stream=None):
        stream = stream or sys.stderr
        prog = error.prog
        usage = error.usage
        if prog is None:
            prog = constants.COMMAND_NAME
            if error.command is not None:
                prog = f"{prog} {error.command.name}"
                usage = self.parsers[error.command.path].format_usage()
        if usage:
            stream.write(usage)
        stream.write(f"{prog}: error: {error.message}\n")

    def print_error(self, error, stream=None):
        stream = stream or sys.stderr
        command = getattr(error, "command", None)
        where = f"{command.name}: " if command is not None else ""
        message = error.message if isinstance(error, VolumeCtlException) else f"{type(error).__name__}: {error}"
        stream.write(f"Error: {where}{message}\n")
        if isinstance(error, TransportFailure):
            if error.status is not None:
                stream.write(f"  status: {error.status}\n")
            if error.body:
                body = error.body.decode('utf-8', 'replace') if isinstance(error.body, bytes) else error.body
                stream.write(f"  response: {body.strip()}\n")
        if command is not None and command.config is not None and command.config.verbose and command.params:
            stream.write(f"  parameters: {command.params}\n")
