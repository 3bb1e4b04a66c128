# targetgen
# Copyright (c) 2026 targetgen developers
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import argparse
import logging
import prettytable
from typing import (Any, Dict, List, Optional, Type)

from ..core.options_manager import (OptionsManager, load_config_file)
from ..core.outcome import (Outcome, failures)
from ..generate import (DeviceAggregator, log_summary)
from ..output import write_families
from ..utility.cmdline import convert_session_options
from ..utility.color_log import LevelCountingHandler

LOG = logging.getLogger(__name__)

class SubcommandBase:
    """@brief Base class for targetgen command line subcommand."""

    # Subcommand descriptors.
    NAMES: List[str] = []
    HELP: str = ""
    EPILOG: Optional[str] = None
    DEFAULT_LOG_LEVEL = logging.INFO
    SUBCOMMANDS: List[Type["SubcommandBase"]] = []

    ## Class attribute to store the built subcommand argument parser.
    parser: Optional[argparse.ArgumentParser] = None

    class CommonOptions:
        """@brief Namespace with parsers for repeated option groups."""

        # Define logging related options.
        LOGGING = argparse.ArgumentParser(description='logging', add_help=False)
        LOGGING_GROUP = LOGGING.add_argument_group("logging")
        LOGGING_GROUP.add_argument('-v', '--verbose', action='count', default=0,
            help="Increase logging level. Can be specified multiple times.")
        LOGGING_GROUP.add_argument('-q', '--quiet', action='count', default=0,
            help="Decrease logging level. Can be specified multiple times.")
        LOGGING_GROUP.add_argument('-L', '--log-level', action='append', metavar="LOGGERS=LEVEL", default=[],
            help="Set log level of loggers whose name matches any of the comma-separated list of glob-style "
            "patterns. Log level must be one of (critical, error, warning, info, debug). Can be "
            "specified multiple times. Example: -Ltargetgen.pack.*=debug")
        LOGGING_GROUP.add_argument('--color', choices=("always", "auto", "never"), default=None, nargs='?',
            const="auto", help="Control color logging. Default is auto.")

        # Define config related options for all subcommands.
        CONFIG = argparse.ArgumentParser(description='common', add_help=False)
        CONFIG_GROUP = CONFIG.add_argument_group("configuration")
        CONFIG_GROUP.add_argument('--config', metavar="PATH",
            help="Specify YAML configuration file. Defaults to targetgen.yaml or targetgen.yml in the "
            "working directory.")
        CONFIG_GROUP.add_argument("--no-config", action="store_true", default=None,
            help="Do not use a configuration file.")
        CONFIG_GROUP.add_argument('-O', action='append', dest='options', metavar="OPTION=VALUE",
            help="Set named option.")

        # Define common options for all subcommands, including logging options.
        COMMON = argparse.ArgumentParser(description='common',
            parents=[LOGGING, CONFIG], add_help=False)

        # Options shared by the subcommands that generate target files.
        GENERATE = argparse.ArgumentParser(description='generate', add_help=False)
        GENERATE_GROUP = GENERATE.add_argument_group("generation")
        GENERATE_GROUP.add_argument("--strict", action="store_true",
            help="Exit with a non-zero status if any device, flash algorithm, or pack failed.")
        GENERATE_GROUP.add_argument("--require-memory-map", action="store_true", default=None,
            help="Skip devices for which no default RAM or flash region can be selected.")

    @classmethod
    def add_subcommands(cls, parser: argparse.ArgumentParser) -> None:
        """@brief Add declared subcommands to the given parser."""
        if cls.SUBCOMMANDS:
            subparsers = parser.add_subparsers(title="subcommands", metavar="", dest='cmd')
            for subcmd_class in cls.SUBCOMMANDS:
                parsers = subcmd_class.get_args()
                subcmd_class.parser = parsers[-1]

                subparser = subparsers.add_parser(
                                subcmd_class.NAMES[0],
                                aliases=subcmd_class.NAMES[1:],
                                parents=parsers,
                                help=subcmd_class.HELP,
                                epilog=subcmd_class.EPILOG)
                subparser.set_defaults(command_class=subcmd_class)
                subcmd_class.customize_subparser(subparser)

    @classmethod
    def get_args(cls) -> List[argparse.ArgumentParser]:
        """@brief Add this subcommand to the subparsers object.
        @return List of argument parsers. The last element in the list _must_ be the parser for the subcommand
            class itself, as it is saved by the caller in cls.parser.
        """
        raise NotImplementedError()

    @classmethod
    def customize_subparser(cls, subparser: argparse.ArgumentParser) -> None:
        """@brief Optionally modify a subparser after it is created."""
        pass

    def __init__(self, args: argparse.Namespace):
        """@brief Constructor.

        @param self This object.
        @param args Namespace of parsed argument values.
        """
        self._args = args
        self._options: Optional[OptionsManager] = None

    def invoke(self) -> int:
        """@brief Run the subcommand.
        @return Process status code for the command.
        """
        if self.parser is not None:
            self.parser.print_help()
        return 0

    @property
    def options(self) -> OptionsManager:
        """@brief Options for this run, built on first access.

        The layers from highest to lowest priority are: explicit subcommand arguments, `-O`
        settings, the config file, then defaults modified by the common arguments.
        """
        if self._options is None:
            self._options = self._build_options()
        return self._options

    @property
    def log_tracebacks(self) -> bool:
        if self._options is None:
            return logging.getLogger('targetgen').isEnabledFor(logging.DEBUG)
        return bool(self._options.get('debug.traceback'))

    def _build_options(self) -> OptionsManager:
        options = OptionsManager()
        cmdline_options = convert_session_options(getattr(self._args, 'options', None))

        options.add_back(self._explicit_options())
        options.add_back(cmdline_options)

        no_config = getattr(self._args, 'no_config', None) or cmdline_options.get('no_config', False)
        if not no_config:
            config_path = getattr(self._args, 'config', None) or cmdline_options.get('config_file')
            options.add_back(load_config_file(config_path))

        options.add_back(self._modified_option_defaults())
        return options

    def _explicit_options(self) -> Dict[str, Any]:
        """@brief Options set by subcommand specific arguments. None values are ignored."""
        return {}

    def _get_log_level_delta(self) -> int:
        """@brief Compute the logging level delta sum from quiet and verbose counts."""
        return (self._args.quiet * 10) - (self._args.verbose * 10)

    def _get_pretty_table(self, fields: List[str], header: Optional[bool] = None) -> prettytable.PrettyTable:
        """@brief Returns a PrettyTable object with formatting options set."""
        pt = prettytable.PrettyTable(fields)
        pt.align = 'l'
        if header is not None:
            pt.header = header
        elif hasattr(self._args, 'no_header'):
            pt.header = not self._args.no_header
        else:
            pt.header = True
        pt.border = True
        pt.hrules = prettytable.HEADER
        pt.vrules = prettytable.NONE
        return pt

    def _modified_option_defaults(self) -> Dict[str, Any]:
        """@brief Returns a dict of option defaults based on common subcommand arguments.
        @precondition Logging must have been configured.
        """
        return {
            # Change 'debug.traceback' default to True if debug logging is enabled.
            'debug.traceback': logging.getLogger('targetgen').isEnabledFor(logging.DEBUG),
        }

class GenerateSubcommandBase(SubcommandBase):
    """@brief Base class for the subcommands that write family files.

    Subclasses implement _collect() to fill the aggregator's registry.
    """

    def _explicit_options(self) -> Dict[str, Any]:
        return {
            'generate.require_memory_map': self._args.require_memory_map,
            }

    def _collect(self, aggregator: DeviceAggregator) -> List[Outcome]:
        raise NotImplementedError()

    def invoke(self) -> int:
        counter = LevelCountingHandler()
        root_logger = logging.getLogger()
        root_logger.addHandler(counter)
        try:
            aggregator = DeviceAggregator(options=self.options)
            outcomes = self._collect(aggregator)
            write_families(aggregator.registry, self._args.output)
        finally:
            root_logger.removeHandler(counter)

        log_summary(outcomes)
        if counter.counts:
            LOG.info("%d warnings and %d errors were logged", counter.counts['WARNING'],
                counter.counts['ERROR'] + counter.counts['CRITICAL'])

        if self._args.strict and failures(outcomes):
            LOG.error("%d units failed", len(failures(outcomes)))
            return 1
        return 0
