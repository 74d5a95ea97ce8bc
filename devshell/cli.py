# SPDX-License-Identifier: MIT
"""Command-line interface for devshell."""

from __future__ import annotations

import argparse
import logging
import os
import subprocess
import sys
from pathlib import Path

from devshell.builders.package import PackageBuilder
from devshell.configure.config import CONFIG_FILE, Configure, ProjectConfig, get_var
from devshell.core.environment import Assembly, EnvironmentAssembler, apply_bindings
from devshell.core.errors import CompilationFailure, DevshellError
from devshell.core.platform import PlatformKey, get_platform
from devshell.generators import GENERATORS, JsonGenerator, ShellGenerator, get_generator

# Set up logging
logger = logging.getLogger("devshell")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def load_project(args: argparse.Namespace) -> ProjectConfig | None:
    """Load devshell.toml from --file or the nearest parent directory.

    Logs the problem and returns None if there is no usable config.
    """
    config_file = getattr(args, "file", None)
    path: Path | None
    if config_file:
        path = Path(config_file)
    else:
        path = Configure.find()
        if path is None:
            logger.error("No %s found in current directory or its parents", CONFIG_FILE)
            logger.info("Run 'devshell init' to create one")
            return None

    try:
        return Configure.load(path)
    except DevshellError as e:
        logger.error("%s", e)
        return None


def session_platform(args: argparse.Namespace) -> PlatformKey:
    """Platform for env/shell/generate: --platform, DEVSHELL_PLATFORM, or the host."""
    text = getattr(args, "platform", None) or get_var("DEVSHELL_PLATFORM")
    if text:
        return PlatformKey.parse(text)
    return get_platform()


def assemble_session(
    args: argparse.Namespace, *, realise: bool = False
) -> tuple[ProjectConfig, Assembly] | None:
    """Load the project and assemble the session environment.

    With realise, packages are made available on disk when the session
    platform is the host. Logs the error and returns None on failure.
    """
    config = load_project(args)
    if config is None:
        return None

    try:
        platform = session_platform(args)
        realise = realise and platform == get_platform()
    except ValueError as e:
        logger.error("%s", e)
        return None

    assembler = EnvironmentAssembler(config.resolver, config.toolchain)
    try:
        assembly = assembler.assemble(config.descriptors(), platform, realise=realise)
    except DevshellError as e:
        logger.error("%s", e)
        return None
    return config, assembly


def cmd_build(args: argparse.Namespace) -> int:
    """Build the default package from the current source tree.

    Prints the artifact location on success. On a compilation failure
    the toolchain's output is written to stderr unchanged.
    """
    setup_logging(args.verbose, args.debug)

    config = load_project(args)
    if config is None:
        return 1

    builder = PackageBuilder(
        config.resolver,
        config.store_dir,
        keep_build_dir=getattr(args, "keep_build_dir", False),
    )
    try:
        artifact = builder.build(config.root_dir, config.toolchain, config.dependencies)
    except CompilationFailure as e:
        sys.stderr.write(e.output)
        if not e.output.endswith("\n"):
            sys.stderr.write("\n")
        return e.returncode or 1
    except DevshellError as e:
        logger.error("%s", e)
        return 1

    print(artifact.location)
    return 0


def cmd_env(args: argparse.Namespace) -> int:
    """Print the environment bindings for a platform."""
    setup_logging(args.verbose, args.debug)

    result = assemble_session(args)
    if result is None:
        return 1
    _, assembly = result

    if args.format == "json":
        sys.stdout.write(JsonGenerator().render(assembly))
    else:
        sys.stdout.write(ShellGenerator(args.format).render(assembly))
    return 0


def cmd_shell(args: argparse.Namespace) -> int:
    """Run an interactive shell (or a command) with the bindings applied."""
    setup_logging(args.verbose, args.debug)

    result = assemble_session(args, realise=True)
    if result is None:
        return 1
    config, assembly = result

    if assembly.platform != get_platform():
        logger.warning("Session platform %s is not the host platform", assembly.platform)

    env = apply_bindings(assembly.bindings)
    env["IN_DEVSHELL"] = config.name

    if sys.platform == "win32":
        shell, run_flag = os.environ.get("COMSPEC", "cmd.exe"), "/c"
    else:
        shell, run_flag = os.environ.get("SHELL", "/bin/sh"), "-c"
    cmd = [shell, run_flag, args.command_string] if args.command_string else [shell]

    logger.info("Running: %s", " ".join(cmd))
    try:
        return subprocess.run(cmd, env=env, cwd=config.root_dir).returncode
    except OSError as e:
        logger.error("Failed to run shell: %s", e)
        return 1


def cmd_check(args: argparse.Namespace) -> int:
    """Assemble the environment for every configured platform."""
    setup_logging(args.verbose, args.debug)

    config = load_project(args)
    if config is None:
        return 1

    assembler = EnvironmentAssembler(config.resolver, config.toolchain)
    results = assembler.assemble_all(config.descriptors(), config.platforms)

    failed = 0
    for platform, outcome in results.items():
        if isinstance(outcome, Assembly):
            print(f"{platform}: ok ({len(outcome.packages)} packages)")
        else:
            failed += 1
            print(f"{platform}: error: {outcome}")

    if failed:
        logger.error("%d of %d platforms failed", failed, len(results))
        return 1
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    """Write environment files (shell hooks, JSON, diagrams)."""
    setup_logging(args.verbose, args.debug)

    result = assemble_session(args)
    if result is None:
        return 1
    config, assembly = result

    output_dir = Path(args.output_dir) if args.output_dir else config.root_dir
    for name in args.generators or ["sh"]:
        try:
            written = get_generator(name).generate(assembly, output_dir)
        except (ValueError, DevshellError) as e:
            logger.error("%s", e)
            return 1
        print(f"Generated {written}")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Show the declared toolchain and dependencies with their roles."""
    setup_logging(args.verbose, args.debug)

    config = load_project(args)
    if config is None:
        return 1

    print(f"Project: {config.name}")
    print(f"Config: {config.path}")
    print(f"Resolver: {config.resolver.name}")
    print(f"Store: {config.store_dir}")
    print(f"Platforms: {', '.join(str(p) for p in config.platforms)}")
    print()
    print(f"Toolchain: {config.toolchain.name}")
    for tool in config.toolchain.tools.values():
        print(f"  {tool.name:<16} {tool.role.value:<12} ({tool.package})")
    print()
    print("Dependencies:")
    if not config.dependencies:
        print("  (none)")
    for dep in config.dependencies:
        print(f"  {dep.name:<24} {dep.role.label}")
    return 0


INIT_TEMPLATE = """\
# devshell project declaration.
#
# Roles:
#   build   - headers/libraries on the compiler and linker search paths
#   runtime - shared libraries on the loader search path (LD_LIBRARY_PATH)
#   both    - build and runtime
#   shell   - executables on PATH only

[project]
name = "{name}"
# platforms = ["linux-x86_64", "linux-arm64", "macos-x86_64", "macos-arm64"]

[toolchain]
kind = "rust"

[dependencies]
# Linked at build time through pkg-config and loaded at runtime
udev = "both"
alsa-lib = "both"
# Loaded with dlopen at runtime only
vulkan-loader = "runtime"
"xorg.libX11" = "runtime"
"xorg.libXcursor" = "runtime"
"xorg.libXi" = "runtime"
"xorg.libXrandr" = "runtime"
libxkbcommon = "runtime"
wayland = "runtime"

[resolver]
kind = "nix"
flake = "github:NixOS/nixpkgs/nixpkgs-unstable"

[store]
dir = ".devshell/store"
"""


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new devshell project.

    Creates a template devshell.toml.
    """
    setup_logging(args.verbose, args.debug)

    config_file = Path(CONFIG_FILE)

    if config_file.exists() and not args.force:
        logger.error("%s already exists (use --force to overwrite)", CONFIG_FILE)
        return 1

    config_file.write_text(INIT_TEMPLATE.format(name=Path.cwd().name))
    logger.info("Created %s", config_file)

    print("Project initialized!")
    print("Next steps:")
    print(f"  1. Edit {CONFIG_FILE} to declare your native dependencies")
    print("  2. Run 'devshell check' to resolve them on every platform")
    print("  3. Run 'devshell shell' to enter the environment")
    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument(
        "-f", "--file", help=f"Path to {CONFIG_FILE} (default: search upwards)"
    )


def add_platform_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--platform",
        metavar="OS-ARCH",
        help="Platform to assemble for (default: DEVSHELL_PLATFORM or the host)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the devshell CLI."""
    parser = argparse.ArgumentParser(
        prog="devshell",
        description="Reproducible package builds and development environments.",
        epilog="Run 'devshell <command> --help' for command-specific help.",
    )
    from devshell import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    # Default command args (for 'devshell' with no subcommand)
    add_common_args(parser)

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # devshell build
    build_parser = subparsers.add_parser(
        "build", help="Build the default package (default command)"
    )
    add_common_args(build_parser)
    build_parser.add_argument(
        "--keep-build-dir",
        action="store_true",
        help="Keep the scratch target directory after building",
    )
    build_parser.set_defaults(func=cmd_build)

    # devshell env
    env_parser = subparsers.add_parser("env", help="Print environment bindings")
    add_common_args(env_parser)
    add_platform_arg(env_parser)
    env_parser.add_argument(
        "--format",
        choices=["sh", "fish", "powershell", "json"],
        default="sh",
        help="Output format (default: sh)",
    )
    env_parser.set_defaults(func=cmd_env)

    # devshell shell
    shell_parser = subparsers.add_parser(
        "shell", help="Start a shell with the environment applied"
    )
    add_common_args(shell_parser)
    add_platform_arg(shell_parser)
    shell_parser.add_argument(
        "-c", dest="command_string", metavar="COMMAND", help="Run COMMAND instead"
    )
    shell_parser.set_defaults(func=cmd_shell)

    # devshell check
    check_parser = subparsers.add_parser(
        "check", help="Resolve the environment on every configured platform"
    )
    add_common_args(check_parser)
    check_parser.set_defaults(func=cmd_check)

    # devshell generate
    gen_parser = subparsers.add_parser("generate", help="Write environment files")
    add_common_args(gen_parser)
    add_platform_arg(gen_parser)
    gen_parser.add_argument(
        "-g",
        "--generator",
        dest="generators",
        action="append",
        choices=GENERATORS,
        help="Generator to run (repeatable, default: sh)",
    )
    gen_parser.add_argument(
        "-o", "--output-dir", help="Output directory (default: project root)"
    )
    gen_parser.set_defaults(func=cmd_generate)

    # devshell info
    info_parser = subparsers.add_parser(
        "info", help="Show toolchain and dependencies with their roles"
    )
    add_common_args(info_parser)
    info_parser.set_defaults(func=cmd_info)

    # devshell init
    init_parser = subparsers.add_parser("init", help="Create a devshell.toml template")
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite existing files"
    )
    add_common_args(init_parser)
    init_parser.set_defaults(func=cmd_init)

    args = parser.parse_args(argv)

    # No subcommand: build the default package
    if args.command is None:
        return cmd_build(args)

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
