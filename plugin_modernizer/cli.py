"""
Command line interface for the Plugin Modernizer.
"""

import argparse
import os
import sys
from typing import List, Optional

from .cache.cache_manager import CacheManager
from .compatibility import toolchains
from .config import Config, get_default_config_path, load_config
from .exceptions import ModernizerError
from .logging_config import get_logger, setup_logging
from .metadata.plugin_service import RemoteMetadataService
from .models import Component
from .upgrade.bom_resolver import DependencyUpgradeResolver, interpolate_artifact_id
from .version import get_full_name_with_version

logger = get_logger('cli')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='plugin-modernizer',
        description='Toolchain, metadata and dependency queries for plugin modernization',
    )
    parser.add_argument('--version', action='version', version=get_full_name_with_version())
    parser.add_argument('-c', '--config', help='Path to YAML configuration file')
    parser.add_argument('--cache-dir', help='Cache directory (overrides configuration)')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--log-file', help='Write a debug log to this file')

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    toolchains_parser = subparsers.add_parser('toolchains', help='List toolchains compatible with a baseline')
    toolchains_parser.add_argument('baseline', help='Platform baseline, e.g. 2.462.3')

    bom_parser = subparsers.add_parser('bom-version', help='Resolve the upgrade target of a BOM artifact')
    bom_parser.add_argument('artifact', help='Artifact id, may reference properties like ${jenkins.baseline}')
    bom_parser.add_argument('current', help='Version currently in use')
    bom_parser.add_argument('--group', help='Group id (default: configured BOM group)')
    bom_parser.add_argument('-D', '--property', action='append', default=[], metavar='KEY=VALUE',
                            help='Property used to resolve references in the artifact id')

    info_parser = subparsers.add_parser('plugin-info', help='Show remote metadata of plugins')
    info_parser.add_argument('plugins', nargs='+', help='Plugin names, or checkout directories with --local')
    info_parser.add_argument('--local', action='store_true', help='Treat arguments as local checkouts')

    subparsers.add_parser('clean-cache', help='Delete every cached entry')
    return parser


def _parse_properties(pairs: List[str]) -> dict:
    properties = {}
    for pair in pairs:
        key, separator, value = pair.partition('=')
        if not separator or not key:
            raise ValueError(f"Invalid property '{pair}', expected KEY=VALUE")
        properties[key] = value
    return properties


def _metadata_service(config: Config) -> RemoteMetadataService:
    cache_manager = CacheManager(config.cache.cache_dir, config.cache.max_age_days)
    return RemoteMetadataService(
        cache_manager,
        endpoints=config.endpoints,
        organization=config.pipeline.organization,
        low_score_threshold=config.pipeline.low_score_threshold,
    )


def cmd_toolchains(args, config: Config) -> int:
    compatible = toolchains.compatible_toolchains(args.baseline)
    if not compatible:
        print(f"No toolchain is compatible with {args.baseline}")
        return 1

    for toolchain in compatible:
        print(f"{toolchain.name}")
    primary, fallback = toolchains.highest_two(compatible)
    print(f"Primary: {primary.major}, fallback: {fallback.major}")
    companion = toolchains.companion_library_version_for(args.baseline)
    if companion:
        print(f"Companion library: {companion}")
    return 0


def cmd_bom_version(args, config: Config) -> int:
    artifact_id = interpolate_artifact_id(args.artifact, _parse_properties(args.property))
    resolver = DependencyUpgradeResolver(_metadata_service(config))
    target = resolver.latest_version(artifact_id, args.current, args.group)
    if target is None:
        print(f"{artifact_id} {args.current} is up to date")
    else:
        print(f"{artifact_id}: {args.current} -> {target}")
    return 0


def cmd_plugin_info(args, config: Config) -> int:
    service = _metadata_service(config)
    exit_code = 0
    for argument in args.plugins:
        if args.local:
            component = Component.build_local(os.path.basename(os.path.abspath(argument)), argument)
        else:
            component = Component.build(argument)
        try:
            repository = service.repository_name_for(component)
            version = service.current_version(component)
            flags = service.metadata_flags(component)
        except ModernizerError as e:
            print(f"{component.name}: {e}", file=sys.stderr)
            exit_code = 1
            continue

        print(component.name)
        print(f"  Repository: {repository}")
        print(f"  Version: {version or 'n/a'}")
        score = service.health_score(component)
        print(f"  Health score: {score if score is not None else 'n/a'}")
        installs = service.install_count(component)
        print(f"  Installations: {installs if installs is not None else 'n/a'}")
        print(f"  Flags: {', '.join(flag.value for flag in flags) or 'none'}")
    return exit_code


def cmd_clean_cache(args, config: Config) -> int:
    cache_manager = CacheManager(config.cache.cache_dir, config.cache.max_age_days)
    cache_manager.wipe()
    print(f"Cache cleaned: {cache_manager.cache_dir}")
    return 0


COMMANDS = {
    'toolchains': cmd_toolchains,
    'bom-version': cmd_bom_version,
    'plugin-info': cmd_plugin_info,
    'clean-cache': cmd_clean_cache,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line interface.

    Args:
        argv: Arguments, defaults to sys.argv[1:]

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config or get_default_config_path())
    except ModernizerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.cache_dir:
        config.cache.cache_dir = args.cache_dir
    level = "DEBUG" if args.debug or config.pipeline.debug else config.logging.level
    setup_logging(level, args.log_file or config.logging.log_file)

    try:
        return COMMANDS[args.command](args, config)
    except (ModernizerError, ValueError, KeyError) as e:
        logger.error(f"{args.command} failed: {e}")
        logger.debug("Error details", exc_info=True)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
