#!/usr/bin/env python3
"""
pagesmith - HTML pre-compiler

Compiles pages written with reusable fragments, components, slots and
embedded expressions into plain, directive-free HTML.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Philosophy:
    - Compile time only: output pages carry no runtime templating
    - Markup-first: sources are HTML plus a handful of m-* directives
    - Reuse: fragments and components are shared across pages and nest freely

Usage:
    pagesmith inputdir/ outputdir/ --pages index.html,about.html

    Each page is read from inputdir/ and written, compiled, to the same
    relative path under outputdir/. Stylesheets extracted from components
    are written next to the component that produced them.

Examples:
    # Single page
    pagesmith site/ public/

    # Several pages, verbose
    pagesmith site/ public/ --pages index.html,docs/intro.html -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .lib import FileSystemBackend, PipelineError, StandardPipeline, __version__, LOG, state_connectToLogger
from .models import ProgramState, pipeline


DISPLAY_TITLE = r"""
                                       _ _   _
  _ __   __ _  __ _  ___  ___ _ __ ___ (_) |_| |__
 | '_ \ / _` |/ _` |/ _ \/ __| '_ ` _ \| | __| '_ \
 | |_) | (_| | (_| |  __/\__ \ | | | | | | |_| | | |
 | .__/ \__,_|\__, |\___||___/_| |_| |_|_|\__|_| |_|
 |_|          |___/

  HTML pre-compiler
"""

# Define CLI arguments
parser = ArgumentParser(
    description="pagesmith - HTML pre-compiler with fragments, components and slots",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--pages",
    default="index.html",
    type=str,
    help="Comma separated list of pages to compile (relative to inputdir)",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve page paths.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - pagePaths: Page paths to compile
            - envOK: True if environment is valid

    Exits:
        1 if the input directory or any page is missing
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    if state.inputdir is None or not state.inputdir.is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.pagePaths = [page.strip() for page in state.pages.split(",") if page.strip()]
    if not state.pagePaths:
        print("Error: No pages given", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    for page in state.pagePaths:
        if not (state.inputdir / page).is_file():
            print(f"Error: Page not found: {state.inputdir / page}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        LOG(f"Page: {page}", level=2)

    state.outputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.outputdir}", level=2)

    state.envOK = True
    return state


def pages_compile(inputstate: ProgramState) -> ProgramState:
    """
    Compile every requested page with one shared pipeline.

    Fragments and components used by several pages are parsed once.

    Args:
        inputstate: Program state with pagePaths

    Returns:
        ProgramState with added field:
            - compileResult: Dict containing:
                - status: bool (all pages compiled)
                - pages: List[str] (pages written)
                - created: int (incidental resources created)

    Exits:
        1 on the first page that fails to compile
    """

    state = inputstate.copy()

    backend = FileSystemBackend(state.inputdir, state.outputdir)
    site_pipeline = StandardPipeline(backend)

    written = []
    for page in state.pagePaths:
        LOG(f"Compiling {page}...", level=1)
        try:
            site_pipeline.page_compile(page)
        except PipelineError as e:
            print(f"Compilation error in {page}: {e}", file=sys.stderr)
            if state.verbosity >= 3:
                import traceback

                traceback.print_exc()
            sys.exit(1)
        written.append(page)

    state.compileResult = {
        "status": True,
        "pages": written,
        "created": len(site_pipeline.cache.created_resources),
    }
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display compilation results to the user.

    Args:
        inputstate: Program state with compileResult populated

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if compileResult is None
    """
    state: ProgramState = inputstate.copy()
    if not state.compileResult:
        print("Error: Compilation failed", file=sys.stderr)
        sys.exit(1)

    LOG("\n✓ Compilation successful!", level=1)
    for page in state.compileResult["pages"]:
        LOG(f"  Output: {state.outputdir / page}", level=1)
    LOG(f"  Created resources: {state.compileResult['created']}", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="pagesmith - HTML pre-compiler",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - compile pages from inputdir into outputdir.

    Orchestrates the full run:
        1. env_check: Validate paths and page list
        2. pages_compile: Compile and write each page
        3. results_report: Display results to user

    Args:
        options: CLI arguments from argparse
            - pages: str - Comma separated page paths
            - verbosity: int - Logging verbosity level (1-3)
        inputdir: Source root
        outputdir: Destination root

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, pages_compile, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
