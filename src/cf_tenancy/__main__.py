"""Entry point for the cf-tenancy command line."""

import argparse
import json
import logging
import os
import sys
from typing import Any

import yaml
from pydantic import BaseModel

from cf_tenancy import __version__
from cf_tenancy.authorization.identity import CallerIdentity
from cf_tenancy.config import AuthMode, LogLevel, OrgBacking, TenancyConfig
from cf_tenancy.domains.orgs.models import CreateOrgMessage, DeleteOrgMessage, ListOrgsMessage
from cf_tenancy.domains.service_bindings.models import (
    CreateServiceBindingMessage,
    ListServiceBindingsMessage,
)
from cf_tenancy.domains.spaces.models import (
    CreateSpaceMessage,
    DeleteSpaceMessage,
    ListSpacesMessage,
)
from cf_tenancy.service import TenancyService
from cf_tenancy.utils.errors import ResourceExistsError, TenancyError

TOKEN_ENV_VAR = "CF_TENANCY_TOKEN"


def setup_logging(level: LogLevel) -> None:
    """Configure logging for the command line."""
    logging.basicConfig(
        level=level.value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _key_value(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key, val


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cf-tenancy",
        description="Manage orgs, spaces and service bindings on hierarchical namespaces",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Cluster options
    parser.add_argument(
        "--root-namespace",
        default=None,
        help="Namespace holding all org namespaces (default: cf)",
    )
    parser.add_argument(
        "--org-backing",
        choices=["anchor", "cforg"],
        default=None,
        help="Object backing each org (default: anchor)",
    )
    parser.add_argument(
        "--auth-mode",
        choices=["auto", "kubeconfig", "in_cluster"],
        default=None,
        help="Authentication mode of the privileged client (default: auto)",
    )
    parser.add_argument(
        "--kubeconfig",
        default=None,
        help="Path to kubeconfig file",
    )
    parser.add_argument(
        "--context",
        default=None,
        help="Kubeconfig context to use",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for each provisioning stage (default: 30)",
    )

    # Caller options
    parser.add_argument(
        "--token",
        default=os.environ.get(TOKEN_ENV_VAR),
        help=f"Bearer token of the caller (default: ${TOKEN_ENV_VAR})",
    )
    parser.add_argument(
        "--username",
        default=None,
        help="Caller's username, if already known; skips the TokenReview",
    )

    # Output
    parser.add_argument(
        "--output",
        "-o",
        choices=["json", "yaml"],
        default="json",
        help="Output format (default: json)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )

    resources = parser.add_subparsers(dest="resource", required=True)

    orgs = resources.add_parser("orgs", help="Manage organizations")
    org_cmds = orgs.add_subparsers(dest="command", required=True)
    org_list = org_cmds.add_parser("list", help="List visible orgs")
    org_list.add_argument("--name", action="append", default=[], help="Filter by name")
    org_list.add_argument("--guid", action="append", default=[], help="Filter by GUID")
    org_create = org_cmds.add_parser("create", help="Create an org")
    org_create.add_argument("name")
    org_create.add_argument("--suspended", action="store_true", help="Create the org suspended")
    org_create.add_argument(
        "--label", action="append", type=_key_value, default=[], metavar="KEY=VALUE"
    )
    org_create.add_argument(
        "--annotation", action="append", type=_key_value, default=[], metavar="KEY=VALUE"
    )
    org_get = org_cmds.add_parser("get", help="Get an org")
    org_get.add_argument("guid")
    org_delete = org_cmds.add_parser("delete", help="Delete an org and its spaces")
    org_delete.add_argument("guid")

    spaces = resources.add_parser("spaces", help="Manage spaces")
    space_cmds = spaces.add_subparsers(dest="command", required=True)
    space_list = space_cmds.add_parser("list", help="List visible spaces")
    space_list.add_argument("--name", action="append", default=[], help="Filter by name")
    space_list.add_argument("--guid", action="append", default=[], help="Filter by GUID")
    space_list.add_argument("--org", action="append", default=[], help="Filter by org GUID")
    space_create = space_cmds.add_parser("create", help="Create a space")
    space_create.add_argument("name")
    space_create.add_argument("--org", required=True, help="Parent org GUID")
    space_create.add_argument(
        "--registry-secret", required=True, help="Image registry credentials secret"
    )
    space_get = space_cmds.add_parser("get", help="Get a space")
    space_get.add_argument("guid")
    space_delete = space_cmds.add_parser("delete", help="Delete a space")
    space_delete.add_argument("guid")
    space_delete.add_argument("--org", required=True, help="Parent org GUID")

    bindings = resources.add_parser("bindings", help="Manage service bindings")
    binding_cmds = bindings.add_subparsers(dest="command", required=True)
    binding_list = binding_cmds.add_parser("list", help="List visible service bindings")
    binding_list.add_argument("--app", action="append", default=[], help="Filter by app GUID")
    binding_list.add_argument(
        "--service-instance", action="append", default=[], help="Filter by instance GUID"
    )
    binding_create = binding_cmds.add_parser("create", help="Bind an app to a service instance")
    binding_create.add_argument("--app", required=True, help="App GUID")
    binding_create.add_argument("--service-instance", required=True, help="Instance GUID")
    binding_create.add_argument("--space", required=True, help="Space GUID")
    binding_create.add_argument("--name", default=None, help="Binding name")
    binding_delete = binding_cmds.add_parser("delete", help="Delete a service binding")
    binding_delete.add_argument("guid")

    return parser


def build_config(args: argparse.Namespace) -> TenancyConfig:
    """Build config from args, falling back to environment/defaults."""
    config_kwargs: dict[str, Any] = {}

    if args.root_namespace:
        config_kwargs["root_namespace"] = args.root_namespace

    if args.org_backing:
        config_kwargs["org_backing"] = OrgBacking(args.org_backing)

    if args.auth_mode:
        config_kwargs["auth_mode"] = AuthMode(args.auth_mode)

    if args.kubeconfig:
        config_kwargs["kubeconfig_path"] = args.kubeconfig

    if args.context:
        config_kwargs["kubeconfig_context"] = args.context

    if args.timeout:
        config_kwargs["provision_timeout"] = args.timeout

    if args.log_level:
        config_kwargs["log_level"] = LogLevel(args.log_level)

    return TenancyConfig(**config_kwargs)


def run_command(service: TenancyService, caller: CallerIdentity, args: argparse.Namespace) -> Any:
    """Dispatch a parsed sub-command and return its result."""
    command = (args.resource, args.command)

    if command == ("orgs", "list"):
        return service.orgs.list_orgs(caller, ListOrgsMessage(names=args.name, guids=args.guid))
    if command == ("orgs", "create"):
        message = CreateOrgMessage(
            name=args.name,
            suspended=args.suspended,
            labels=dict(args.label),
            annotations=dict(args.annotation),
        )
        return service.orgs.create_org(caller, message)
    if command == ("orgs", "get"):
        return service.orgs.get_org(caller, args.guid)
    if command == ("orgs", "delete"):
        service.orgs.delete_org(caller, DeleteOrgMessage(guid=args.guid))
        return {"deleted": args.guid}

    if command == ("spaces", "list"):
        message = ListSpacesMessage(names=args.name, guids=args.guid, organization_guids=args.org)
        return service.spaces.list_spaces(caller, message)
    if command == ("spaces", "create"):
        message = CreateSpaceMessage(
            name=args.name,
            organization_guid=args.org,
            image_registry_credentials=args.registry_secret,
        )
        return service.spaces.create_space(caller, message)
    if command == ("spaces", "get"):
        return service.spaces.get_space(caller, args.guid)
    if command == ("spaces", "delete"):
        service.spaces.delete_space(
            caller, DeleteSpaceMessage(guid=args.guid, organization_guid=args.org)
        )
        return {"deleted": args.guid}

    if command == ("bindings", "list"):
        message = ListServiceBindingsMessage(
            app_guids=args.app, service_instance_guids=args.service_instance
        )
        return service.service_bindings.list_service_bindings(caller, message)
    if command == ("bindings", "create"):
        repo = service.service_bindings
        if repo.service_binding_exists(caller, args.space, args.app, args.service_instance):
            raise ResourceExistsError(
                "Service Binding", f"{args.app}/{args.service_instance}"
            )
        message = CreateServiceBindingMessage(
            app_guid=args.app,
            service_instance_guid=args.service_instance,
            space_guid=args.space,
            name=args.name,
        )
        return repo.create_service_binding(caller, message)
    if command == ("bindings", "delete"):
        service.service_bindings.delete_service_binding(caller, args.guid)
        return {"deleted": args.guid}

    raise ValueError(f"Unknown command: {' '.join(command)}")


def _to_json(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if isinstance(result, list):
        return [_to_json(item) for item in result]
    return result


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Create config
    config = build_config(args)

    # Setup logging
    setup_logging(config.log_level)

    logger = logging.getLogger(__name__)

    # Validate auth config
    try:
        warnings = config.validate_auth_config()
        for warning in warnings:
            logger.warning(warning)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    if not args.token:
        logger.error(f"No caller token given; pass --token or set {TOKEN_ENV_VAR}")
        return 1
    caller = CallerIdentity(token=args.token, username=args.username)

    try:
        with TenancyService(config) as service:
            result = run_command(service, caller, args)
    except TenancyError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    data = _to_json(result)
    if args.output == "yaml":
        print(yaml.safe_dump(data, sort_keys=False), end="")
    else:
        print(json.dumps(data, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
