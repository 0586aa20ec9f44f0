from .seeds import derive_seed, draw_master_seed
from .generator import GeneratorError, ProgramGenerator, CommandGenerator, CorpusGenerator
from .store import (
    FailureRecord,
    FailureStore,
    StoreError,
    FailureNotFoundError,
    format_failure_log,
    record_id_for_seed,
)
from .runner import CampaignRunner, CampaignReport, minimization_summary

__all__ = [
    'derive_seed',
    'draw_master_seed',
    'GeneratorError',
    'ProgramGenerator',
    'CommandGenerator',
    'CorpusGenerator',
    'FailureRecord',
    'FailureStore',
    'StoreError',
    'FailureNotFoundError',
    'format_failure_log',
    'record_id_for_seed',
    'CampaignRunner',
    'CampaignReport',
    'minimization_summary',
]
