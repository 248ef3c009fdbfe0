import json
import sys

import yaml

from volumectl_core import constants, utils
from volumectl_core.api_client import RemoteResponse
from volumectl_core.exceptions import DecodeFailure

SIZE_FIELDS = ("capacity", "size")

LIST_COLUMNS = {
    constants.RESOURCE_VOLUME: ["name", "type", "capacity", "profile"],
    constants.RESOURCE_PROFILE: ["name", "type", "capacity"],
    constants.RESOURCE_BACKUP: ["name", "volume", "size", "created"],
}

VERBOSE_COLUMNS = {
    constants.RESOURCE_VOLUME: ["iops", "transport", "user", "status"],
    constants.RESOURCE_PROFILE: ["iops", "transport", "user"],
    constants.RESOURCE_BACKUP: ["profile", "label", "status"],
}


def decode_payload(payload):
    """Accept a decoded payload, a raw JSON string/bytes or a response."""
    if isinstance(payload, RemoteResponse):
        return payload.json()
    if isinstance(payload, (bytes, str)):
        if not payload.strip():
            return None
        try:
            return json.loads(payload)
        except ValueError as e:
            raise DecodeFailure(f"Invalid JSON payload: {e}", body=payload)
    return payload


def dump_json(data):
    return json.dumps(data, indent=2)


def dump_yaml(data):
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip("\n")


def _format_value(key, value, verbose=False):
    if key in SIZE_FIELDS and isinstance(value, int) and not isinstance(value, bool):
        if verbose:
            return f"{utils.humanbytes(value)} ({value})"
        return utils.humanbytes(value)
    if isinstance(value, dict):
        return ", ".join(f"{k}={v}" for k, v in value.items())
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if value is None:
        return ""
    return value


def _items(data, resource):
    if isinstance(data, dict):
        for key in (f"{resource}s", "items", "results"):
            if isinstance(data.get(key), list):
                return data[key]
        return [data]
    return data or []


def render_list(data, config, command):
    resource = command.resource
    items = _items(data, resource)
    if not items:
        return ""
    if not all(isinstance(item, dict) for item in items):
        rows = [{resource: _format_value(resource, item)} for item in items]
        return utils.print_table(rows, fields=[resource])
    columns = list(LIST_COLUMNS.get(resource, []))
    if config.verbose:
        columns += VERBOSE_COLUMNS.get(resource, [])
    present = [c for c in columns if any(c in item for item in items)]
    if not present:
        present = list(items[0].keys())
    rows = [{c: _format_value(c, item.get(c)) for c in present} for item in items]
    return utils.print_table(rows, fields=present)


def render_fields(data, config, command):
    if not isinstance(data, dict):
        return str(data)
    fields = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)) and not config.verbose and not value:
            continue
        fields[key] = _format_value(key, value, config.verbose)
    return utils.print_fields(fields)


def render_created(data, config, command):
    name = data.get("name") if isinstance(data, dict) else None
    name = name or command.param("name")
    out = f"Created {command.resource} {name}"
    if config.verbose and isinstance(data, dict):
        out += "\n" + render_fields(data, config, command)
    return out


def render_removed(data, config, command):
    out = f"Removed {command.resource} {command.param('name')}"
    if config.verbose and isinstance(data, dict) and data:
        out += "\n" + render_fields(data, config, command)
    return out


def render_backup(data, config, command):
    label = data.get("name") if isinstance(data, dict) else None
    out = f"Backup of {command.resource} {command.param('name')} started"
    if label:
        out += f": {label}"
    if config.verbose and isinstance(data, dict):
        out += "\n" + render_fields(data, config, command)
    return out


def render_version(data, config, command):
    return f"{constants.COMMAND_NAME} {data.get('version')}"


RENDERERS = {
    "create": render_created,
    "list": render_list,
    "inspect": render_fields,
    "remove": render_removed,
    "backup": render_backup,
    "info": render_fields,
    "version": render_version,
}


def format_output(payload, config, command=None):
    """Return the text to display for payload, empty when nothing is shown.

    An absent body and an empty list or object count as empty payloads in
    every mode.
    """
    data = decode_payload(payload)
    if data is None or data in ("", [], {}):
        return ""

    if config.machine:
        return dump_json(data)

    if config.raw or config.yaml:
        return dump_yaml(data) if config.yaml else dump_json(data)

    renderer = RENDERERS.get(command.action) if command is not None else None
    out = renderer(data, config, command) if renderer else dump_json(data)
    if config.debug:
        out = f"{out}\n{dump_json(data)}" if out else dump_json(data)
    return out or ""


def display(payload, config, command=None, stream=None):
    out = format_output(payload, config, command)
    if out:
        print(out, file=stream or sys.stdout)
    return out
