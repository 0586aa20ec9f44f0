from .normalizer import NormalizedOutput, OutputNormalizer, normalize
from .detector import VerdictKind, DivergenceVerdict, DivergenceDetector

__all__ = [
    'NormalizedOutput',
    'OutputNormalizer',
    'normalize',
    'VerdictKind',
    'DivergenceVerdict',
    'DivergenceDetector',
]
