"""Shared wiring for command handlers: config loading and component assembly."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from parity.config import GlobalConfig, get_bootstrap_cache_dir, get_config, set_config
from parity.diff import DivergenceDetector, OutputNormalizer, VerdictKind
from parity.oracles import (
    BootstrapCache,
    CandidateOracle,
    CommandTranslator,
    ReferenceOracle,
    ScriptSandbox,
)
from parity.reduce import Minimizer, ReproductionPolicy, UnitParser
from parity.campaign import CommandGenerator, CorpusGenerator, FailureStore, GeneratorError

logger = logging.getLogger(__name__)


def load_config(args) -> GlobalConfig:
    """Config from ``--config`` when given, else the shared global instance."""
    config_path = getattr(args, 'config', None)
    if config_path:
        config = GlobalConfig.load(Path(config_path))
        set_config(config)
        return config
    return get_config()


def open_store(config: GlobalConfig, output: Optional[str] = None) -> FailureStore:
    return FailureStore(output or config.campaign.output_dir,
                        artifact_marker=config.candidate.artifact_marker)


def build_generator(config: GlobalConfig):
    gen = config.generator
    if gen.kind == "corpus":
        if not gen.corpus_dir:
            raise GeneratorError("generator.corpus_dir is not set")
        return CorpusGenerator(gen.corpus_dir)
    if not gen.command:
        raise GeneratorError("generator.command is not set; configure [generator] in config.toml")
    return CommandGenerator(gen.command, timeout=gen.timeout)


@dataclass
class Harness:
    detector: DivergenceDetector
    minimizer: Minimizer
    sandbox: ScriptSandbox


def build_minimizer(config: GlobalConfig, detector: DivergenceDetector) -> Minimizer:
    settings = config.minimizer
    kinds = [VerdictKind.MISMATCH]
    if settings.chase_both_errored:
        kinds.append(VerdictKind.BOTH_ERRORED)
    return Minimizer(
        detector,
        units=UnitParser(config.reference.entry_point, settings.statement_denylist),
        max_passes=settings.max_passes,
        policy=ReproductionPolicy(settings.policy),
        minimizable_kinds=kinds,
        cache_trials=settings.cache_trials,
    )


@contextmanager
def open_harness(config: GlobalConfig) -> Iterator[Harness]:
    """Assemble both oracles, the detector and the minimizer; close the sandbox on exit."""
    candidate_settings = config.candidate
    reference = ReferenceOracle(
        entry_point=config.reference.entry_point,
        locale_name=config.reference.locale,
        timeout=config.reference.timeout,
    )
    translator = CommandTranslator(
        candidate_settings.translator_command,
        version_command=candidate_settings.version_command,
        bootstrap_command=candidate_settings.bootstrap_command,
        output_glob=candidate_settings.output_glob,
        runtime_prefixes=candidate_settings.runtime_prefixes,
        timeout=candidate_settings.translate_timeout,
    )
    cache_dir = Path(candidate_settings.cache_dir).expanduser() if candidate_settings.cache_dir \
        else get_bootstrap_cache_dir()
    sandbox = ScriptSandbox(command=candidate_settings.sandbox_command)
    candidate = CandidateOracle(
        translator,
        sandbox,
        BootstrapCache(cache_dir),
        sentinel=candidate_settings.sentinel,
        timeout=candidate_settings.timeout,
    )
    detector = DivergenceDetector(
        reference,
        candidate,
        normalizer=OutputNormalizer(config.normalizer.drop_blank_lines),
        parallel=config.campaign.parallel_oracles,
    )
    try:
        yield Harness(detector=detector, minimizer=build_minimizer(config, detector), sandbox=sandbox)
    finally:
        sandbox.close()
