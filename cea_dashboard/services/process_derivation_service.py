"""
Process Derivation Service
Derives a mapped process from a call transcription and links it to the call.

A call gets at most one process. The link is written with a conditional
update (process_id is null), so concurrent derivations for the same call
race on the store and only one of them wins; the loser removes the
process it created.
"""
import logging
import uuid
from datetime import datetime
from typing import Optional
from supabase import Client

from cea_dashboard.domain.errors import DerivationError
from cea_dashboard.domain.models.process import (
    DiagramData,
    DiagramEdge,
    DiagramNode,
    ImprovementsData,
    Process,
    ProcessStatus,
    Transcription,
)
from cea_dashboard.domain.models.scheduled_call import ScheduledCall
from cea_dashboard.services.activity_service import ActivityRecorder, ActivityType
from cea_dashboard.utils.tenant_filter import apply_tenant_filter

logger = logging.getLogger(__name__)


DEFAULT_EFFICIENCY_SCORE = 75


def build_process_diagram() -> DiagramData:
    return DiagramData(
        nodes=[
            DiagramNode(id="1", label="Inicio", type="start"),
            DiagramNode(id="2", label="Proceso identificado", type="process"),
            DiagramNode(id="3", label="Fin", type="end"),
        ],
        edges=[
            DiagramEdge(source="1", to="2"),
            DiagramEdge(source="2", to="3"),
        ],
    )


def build_improvements() -> ImprovementsData:
    return ImprovementsData(
        suggestions=[
            "Automatizar el paso 2 para reducir tiempo de procesamiento",
            "Implementar validaciones adicionales en el proceso",
            "Considerar paralelización de tareas",
        ],
        efficiency_gain=25,
        time_saved="15 minutos por ejecución",
    )


class ProcessDerivationService:
    """Creates the derived process for a transcribed call"""

    def __init__(self, supabase: Client, activity_recorder: Optional[ActivityRecorder] = None):
        self.supabase = supabase
        self.activity_recorder = activity_recorder or ActivityRecorder(supabase)

    def get_transcription(self, organization_id: str, transcription_id: str) -> Optional[Transcription]:
        query = self.supabase.table("transcriptions").select("*").eq("id", transcription_id)
        response = apply_tenant_filter(query, organization_id).execute()
        if not response.data:
            return None
        return Transcription.model_validate(response.data[0])

    def build_process_row(self, call: ScheduledCall, transcription: Transcription) -> dict:
        today = datetime.utcnow()
        date_label = today.strftime("%d/%m/%Y")
        now = today.isoformat()
        return {
            "id": str(uuid.uuid4()),
            "organization_id": call.organization_id,
            "name": f"Proceso mapeado - {date_label}",
            "description": f"Proceso mapeado automáticamente desde la llamada del {date_label}",
            "status": ProcessStatus.ACTIVE.value,
            "efficiency_score": DEFAULT_EFFICIENCY_SCORE,
            "diagram_data": build_process_diagram().model_dump(by_alias=True),
            "improvements_data": build_improvements().model_dump(),
            "transcription_id": transcription.id,
            "created_by": call.created_by,
            "created_at": now,
            "updated_at": now,
        }

    def derive_for_call(self, call: ScheduledCall, transcription: Transcription) -> Optional[Process]:
        """
        Create and link the process for a call.

        Returns:
            The linked process, or None if the call already had one

        Raises:
            DerivationError: If the process could not be created or linked
        """
        if call.process_id:
            logger.info(f"Call {call.id} already linked to process {call.process_id}; skipping derivation")
            return None
        if transcription.organization_id != call.organization_id:
            raise DerivationError(f"Transcription {transcription.id} belongs to another organization")

        row = self.build_process_row(call, transcription)
        try:
            response = self.supabase.table("processes").insert(row).execute()
        except Exception as e:
            raise DerivationError(f"Could not create process for call {call.id}: {e}") from e
        process = Process.model_validate(response.data[0] if response.data else row)

        try:
            linked = self._link_process(call, process.id)
        except Exception as e:
            self._discard_process(process)
            raise DerivationError(f"Could not link process to call {call.id}: {e}") from e

        if not linked:
            logger.info(f"Call {call.id} was linked by a concurrent derivation; discarding process {process.id}")
            self._discard_process(process)
            return None

        logger.info(f"Process mapping completed for call {call.id}. Process ID: {process.id}")
        self.activity_recorder.record(
            organization_id=call.organization_id,
            user_id=call.created_by,
            activity_type=ActivityType.PROCESS_CREATED,
            title=f"Proceso creado: {process.name}",
            metadata={"process_id": process.id, "scheduled_call_id": call.id},
        )
        return process

    def derive_from_recorded_transcription(self, call: ScheduledCall) -> Optional[Process]:
        """Retry derivation for a call whose transcription was ingested earlier."""
        if call.process_id:
            return None
        if not call.transcription_id:
            raise DerivationError(f"Call {call.id} has no recorded transcription")

        transcription = self.get_transcription(call.organization_id, call.transcription_id)
        if transcription is None:
            raise DerivationError(f"Transcription {call.transcription_id} not found")
        return self.derive_for_call(call, transcription)

    def _link_process(self, call: ScheduledCall, process_id: str) -> bool:
        """Set process_id only if the call has none yet. Returns whether this update won."""
        query = self.supabase.table("scheduled_calls").update({
            "process_id": process_id,
            "updated_at": datetime.utcnow().isoformat(),
        }).eq("id", call.id)
        query = apply_tenant_filter(query, call.organization_id).is_("process_id", "null")
        response = query.execute()
        return bool(response.data)

    def _discard_process(self, process: Process) -> None:
        try:
            query = self.supabase.table("processes").delete().eq("id", process.id)
            apply_tenant_filter(query, process.organization_id).execute()
        except Exception as e:
            logger.error(f"Could not remove unlinked process {process.id}: {e}")
