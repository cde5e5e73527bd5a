import pytest

from moveaudit.config import AuditConfig
from moveaudit.core.corpus import RuleCorpus
from moveaudit.core.engine import AuditEngine



@pytest.fixture(scope="session")
def corpus() -> RuleCorpus:
    return RuleCorpus.load()


@pytest.fixture
def engine(corpus) -> AuditEngine:
    return AuditEngine(corpus, AuditConfig())
