# DEPENDENCIES
import uuid
import threading
from abc import ABC
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from datetime import datetime
from datetime import timezone
from abc import abstractmethod
from dataclasses import field
from dataclasses import dataclass
from services.data_models import Flag
from services.data_models import Severity
from services.data_models import AnalyzerMeta
from services.data_models import AnalysisResult
from services.errors import AnalysisNotFoundError


@dataclass(frozen = True)
class StoredContract:
    contract_id : str
    owner_id    : str
    title       : str
    text        : str
    created_at  : datetime


@dataclass(frozen = True)
class StoredAnalysis:
    """
    Persisted analysis row; flags are stored separately and fetched with list_flags()
    """
    analysis_id      : str
    contract_id      : str
    owner_id         : str
    title            : str
    overall_risk     : Severity
    summary          : str
    ai_ran           : bool
    ai_fallback_used : bool
    meta             : Optional[AnalyzerMeta] = None
    created_at       : datetime               = field(default_factory = lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {"analysis_id"      : self.analysis_id,
                "contract_id"      : self.contract_id,
                "title"            : self.title,
                "overall_risk"     : self.overall_risk.value,
                "summary"          : self.summary,
                "ai_ran"           : self.ai_ran,
                "ai_fallback_used" : self.ai_fallback_used,
                "meta"             : self.meta.to_dict() if self.meta else None,
                "created_at"       : self.created_at.isoformat(),
               }


class AnalysisStore(ABC):
    """
    Owner-scoped persistence collaborator; all ids are opaque strings
    """
    @abstractmethod
    def insert_contract(self, owner_id: str, text: str, title: Optional[str] = None) -> str:
        ...

    @abstractmethod
    def insert_analysis(self, owner_id: str, contract_id: str, result: AnalysisResult) -> str:
        ...

    @abstractmethod
    def insert_flags(self, owner_id: str, analysis_id: str, flags: List[Flag]) -> int:
        ...

    @abstractmethod
    def get_analysis(self, owner_id: str, analysis_id: str) -> StoredAnalysis:
        ...

    @abstractmethod
    def list_flags(self, owner_id: str, analysis_id: str) -> List[Flag]:
        ...


class InMemoryAnalysisStore(AnalysisStore):
    """
    Thread-safe, process-local store; rows owned by another owner are invisible
    """
    DEFAULT_TITLE = "Untitled Contract"


    def __init__(self):
        self._lock      = threading.Lock()
        self._contracts : Dict[str, StoredContract] = dict()
        self._analyses  : Dict[str, StoredAnalysis] = dict()
        self._flags     : Dict[str, List[Flag]]     = dict()


    def insert_contract(self, owner_id: str, text: str, title: Optional[str] = None) -> str:
        contract_id = str(uuid.uuid4())

        with self._lock:
            self._contracts[contract_id] = StoredContract(contract_id = contract_id,
                                                          owner_id    = owner_id,
                                                          title       = title or self.DEFAULT_TITLE,
                                                          text        = text,
                                                          created_at  = datetime.now(timezone.utc),
                                                         )

        return contract_id


    def insert_analysis(self, owner_id: str, contract_id: str, result: AnalysisResult) -> str:
        analysis_id = str(uuid.uuid4())

        with self._lock:
            contract = self._contracts.get(contract_id)

            if (contract is None) or (contract.owner_id != owner_id):
                raise AnalysisNotFoundError(f"Contract not found: {contract_id}")

            self._analyses[analysis_id] = StoredAnalysis(analysis_id      = analysis_id,
                                                         contract_id      = contract_id,
                                                         owner_id         = owner_id,
                                                         title            = contract.title,
                                                         overall_risk     = result.overall_risk,
                                                         summary          = result.summary,
                                                         ai_ran           = result.ai_ran,
                                                         ai_fallback_used = result.ai_fallback_used,
                                                         meta             = result.meta,
                                                        )

        return analysis_id


    def insert_flags(self, owner_id: str, analysis_id: str, flags: List[Flag]) -> int:
        with self._lock:
            self._owned_analysis(owner_id, analysis_id)
            self._flags.setdefault(analysis_id, []).extend(flags)

        return len(flags)


    def get_analysis(self, owner_id: str, analysis_id: str) -> StoredAnalysis:
        with self._lock:
            return self._owned_analysis(owner_id, analysis_id)


    def list_flags(self, owner_id: str, analysis_id: str) -> List[Flag]:
        with self._lock:
            self._owned_analysis(owner_id, analysis_id)

            return list(self._flags.get(analysis_id, []))


    def _owned_analysis(self, owner_id: str, analysis_id: str) -> StoredAnalysis:
        analysis = self._analyses.get(analysis_id)

        if (analysis is None) or (analysis.owner_id != owner_id):
            raise AnalysisNotFoundError(f"Analysis not found: {analysis_id}")

        return analysis
