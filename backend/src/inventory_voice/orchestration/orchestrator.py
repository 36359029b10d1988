"""
Task orchestrator - one conversational turn as a pure state transition.

``advance(state, utterance) -> (new_state, result)`` never mutates ``state``;
the caller commits the returned state once the turn is over.
"""

from __future__ import annotations

from typing import Any, Optional

from inventory_voice.contracts.actions import (
    AssistantAction,
    CreateMaintainer,
    CreateProduct,
    ErrorType,
    PrepareEmail,
    RegisterMaintenance,
    RiskLevel,
    SearchProducts,
    ShowProduct,
    TurnAction,
    TurnConfirmation,
    TurnFailure,
    TurnReply,
    TurnResult,
)
from inventory_voice.contracts.audit import AuditEventType
from inventory_voice.contracts.catalog import Product, ProductCatalog
from inventory_voice.contracts.dialogue import DialogueState, FieldClarification, Role
from inventory_voice.contracts.resolution import Ambiguous, Found, NeedsConfirmation, NotFound, ResolutionResult
from inventory_voice.contracts.sanitize import Suspicious
from inventory_voice.contracts.tasks import (
    TASK_LABELS,
    ActiveTask,
    MaintainerCreationTask,
    MaintenanceRegistrationTask,
    ProductCreationTask,
    normalize_field_name,
)
from inventory_voice.errors import (
    AssistantError,
    InvalidInputError,
    OracleMalformedError,
    OracleUnavailableError,
    RateLimitedError,
    SuspiciousInputError,
)
from inventory_voice.logging_config import get_logger, turn_scope
from inventory_voice.orchestration.directives import (
    Directive,
    DirectiveType,
    TASK_DIRECTIVES,
    parse_key_values,
    parse_reply,
    to_action,
)
from inventory_voice.orchestration.prompts import PromptBuilder
from inventory_voice.services.audit import AuditTrail
from inventory_voice.services.classifiers import (
    IntentClassifier,
    PhraseIntentClassifier,
    RegexSpeakerClassifier,
    SpeakerClassifier,
    UserIntent,
    normalize_reply,
    update_speaker_hint,
)
from inventory_voice.services.entity_resolver import EntityResolver, match_maintenance_type
from inventory_voice.services.input_guard import admit_barcode, admit_free_text
from inventory_voice.services.oracle import TextOracle
from inventory_voice.services.rate_limiter import RateLimiter
from inventory_voice.services.transcript import postprocess_transcript

logger = get_logger(__name__)

RATE_LIMITED_MESSAGE = "Troppe richieste. Attendi un momento prima di riprovare."
TRUNCATED_REPLY = "Mi dispiace, puoi ripetere in modo più specifico?"
MALFORMED_REPLY = "Non ho capito, puoi riformulare?"
UNAVAILABLE_REPLY = "Non riesco a contattare l'assistente in questo momento, puoi ripetere?"
DEFAULT_SUGGESTION = "Come posso aiutarti?"
SEARCH_RESULTS_FALLBACK = "Ecco i risultati della ricerca."

CONFIRMED_REPLY = "Perfetto, procedo!"
REJECTED_REPLY = "Ok, operazione annullata. Come posso aiutarti?"
UNCLEAR_CONFIRMATION_REPLY = "Non ho capito la risposta."
CONFIRMATION_REASK = "Per favore rispondi 'sì' per confermare o 'no' per annullare."

AFFIRMATIVE_REPLIES = frozenset(
    {"sì", "si", "yes", "ok", "okay", "confermo", "conferma", "confirm", "procedi", "vai", "go ahead", "va bene"}
)
NEGATIVE_REPLIES = frozenset({"no", "annulla", "cancel", "stop", "ferma"})

# Task fields that name a catalog entity and are resolved before merging.
_RESOLVED_FIELDS: dict[type, dict[str, str]] = {
    ProductCreationTask: {"location": "location", "assignee": "assignee"},
    MaintenanceRegistrationTask: {"performed_by": "maintainer"},
}


def confirmation_message(action: AssistantAction) -> str:
    """Risk-appropriate confirmation prompt; HIGH risk names the consequence."""
    if isinstance(action, PrepareEmail):
        return "Vuoi davvero inviare un'email al manutentore? Rispondi 'sì' o 'no'."
    if isinstance(action, CreateProduct):
        return "Confermi la creazione del nuovo prodotto? Rispondi 'sì' o 'no'."
    if isinstance(action, RegisterMaintenance):
        return "Confermi la registrazione della manutenzione? Rispondi 'sì' o 'no'."
    if isinstance(action, CreateMaintainer):
        return "Confermi la creazione del nuovo manutentore? Rispondi 'sì' o 'no'."
    return "Confermi questa azione? Rispondi 'sì' o 'no'."


def _result_text(result: TurnResult) -> str:
    if isinstance(result, TurnFailure):
        return result.message
    if isinstance(result, TurnConfirmation):
        return f"{result.text} {result.confirmation_message}".strip()
    return result.text


def _join(text: str, notes: list[str]) -> str:
    return " ".join(part for part in (text, *notes) if part)


def _failure(error: AssistantError, message: Optional[str] = None) -> TurnFailure:
    """User-facing failure for an admission error; the code picks the category."""
    return TurnFailure(message=message or error.message, error_type=ErrorType(error.code.lower()))


def _with_task(
    state: DialogueState, task: ActiveTask, clarification: Optional[FieldClarification]
) -> DialogueState:
    state = state.with_task(task)
    return state.with_clarification(clarification) if clarification is not None else state


class TaskOrchestrator:
    """
    Coordinates one conversational turn.

    Admission -> sanitize -> confirmation branch -> field clarification ->
    task intent branch ->
    oracle -> directive parse -> internal task handling -> risk gate.
    """

    def __init__(
        self,
        oracle: TextOracle,
        rate_limiter: RateLimiter,
        entity_resolver: EntityResolver,
        products: Optional[ProductCatalog] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        audit: Optional[AuditTrail] = None,
        speaker_classifier: Optional[SpeakerClassifier] = None,
        intent_classifier: Optional[IntentClassifier] = None,
        stt_postprocess: bool = True,
    ):
        self.oracle = oracle
        self.rate_limiter = rate_limiter
        self.resolver = entity_resolver
        self.products = products
        self.prompts = prompt_builder or PromptBuilder(products=products)
        self.audit = audit or AuditTrail()
        self.speaker_classifier = speaker_classifier or RegexSpeakerClassifier()
        self.intent_classifier = intent_classifier or PhraseIntentClassifier()
        self.stt_postprocess = stt_postprocess

    # ------------------------------------------------------------------
    # Turn entry points
    # ------------------------------------------------------------------

    def advance(self, state: DialogueState, utterance: str) -> tuple[DialogueState, TurnResult]:
        """Process one utterance. Refused turns return ``state`` unchanged."""
        with turn_scope():
            logger.info("turn_start", length=len(utterance))
            new_state, result = self._advance(state, utterance)
            logger.info(
                "turn_completed",
                result=result.kind,
                awaiting_confirmation=new_state.awaiting_confirmation,
                active_task=new_state.active_task.kind if new_state.active_task else None,
            )
            return new_state, result

    def advance_barcode(self, state: DialogueState, code: str) -> tuple[DialogueState, TurnResult]:
        """Look up a scanned code. Stricter sanitizing, no oracle call."""
        with turn_scope(prefix="scan"):
            try:
                barcode = admit_barcode(code).text
            except InvalidInputError as e:
                return state, _failure(e)
            except SuspiciousInputError as e:
                self.audit.log(AuditEventType.SUSPICIOUS_INPUT, f"Suspicious barcode: {e.message}", e.context)
                return state, _failure(e, "Codice non valido")

            if self.products is None:
                return state, TurnAction(action=SearchProducts(query=barcode), text="")
            try:
                product = self.products.get_by_barcode(barcode)
            except Exception as e:
                logger.warning("barcode_lookup_failed", error_type=type(e).__name__)
                self.audit.log_error("Barcode lookup failed", e)
                return state, TurnAction(action=SearchProducts(query=barcode), text="")

            if product is None:
                return state, TurnReply(
                    text=f"Nessun prodotto trovato con codice {barcode}. Vuoi aggiungerlo all'inventario?"
                )
            action = ShowProduct(product_id=product.id)
            self.audit.log_action(AuditEventType.ACTION_REQUESTED, action)
            return state.with_current_product(product), TurnAction(
                action=action, text=f"Ho trovato: {product.name}"
            )

    def present_search_results(
        self,
        state: DialogueState,
        utterance: str,
        products: list[Product],
    ) -> tuple[DialogueState, TurnResult]:
        """Have the oracle describe search results the caller already fetched."""
        new_state = state.with_search_results(products)
        try:
            self.rate_limiter.acquire()
        except RateLimitedError as e:
            self.audit.log(AuditEventType.RATE_LIMITED, "Request blocked", e.context)
            return new_state, TurnReply(text=SEARCH_RESULTS_FALLBACK)
        prompt = self.prompts.search_results_prompt(utterance, list(products))
        try:
            text = parse_reply(self.oracle.complete(prompt)).text
        except Exception as e:
            logger.warning("search_presentation_failed", error_type=type(e).__name__)
            text = ""
        return new_state, TurnReply(text=text or SEARCH_RESULTS_FALLBACK)

    def suggest(self, state: DialogueState) -> TurnReply:
        """Short proactive suggestion; any failure yields a neutral prompt."""
        try:
            self.rate_limiter.acquire()
        except RateLimitedError:
            return TurnReply(text=DEFAULT_SUGGESTION)
        try:
            text = parse_reply(self.oracle.complete(self.prompts.suggestion_prompt(state))).text
        except Exception as e:
            logger.warning("suggestion_failed", error_type=type(e).__name__)
            text = ""
        return TurnReply(text=text or DEFAULT_SUGGESTION)

    def cancel_pending(self, state: DialogueState) -> DialogueState:
        if state.pending_action is not None:
            self.audit.log_action(AuditEventType.ACTION_REJECTED, state.pending_action.action)
        return state.clear_pending()

    # ------------------------------------------------------------------
    # Turn pipeline
    # ------------------------------------------------------------------

    def _advance(self, state: DialogueState, utterance: str) -> tuple[DialogueState, TurnResult]:
        # 1. Admission
        try:
            self.rate_limiter.acquire()
        except RateLimitedError as e:
            self.audit.log(AuditEventType.RATE_LIMITED, "Request blocked", e.context)
            return state, _failure(e, RATE_LIMITED_MESSAGE)

        # 2. Sanitize, then clean up recognizer artifacts
        try:
            checked = admit_free_text(utterance)
        except InvalidInputError as e:
            self.audit.log(AuditEventType.SUSPICIOUS_INPUT, f"Input rejected: {e.message}", e.context)
            return state, _failure(e)
        suspicious = isinstance(checked, Suspicious)
        clean = postprocess_transcript(checked.text) if self.stt_postprocess else checked.text
        self.audit.log_request(clean, suspicious=suspicious)

        # 3. Record the utterance and who is probably speaking
        state = state.add_exchange(Role.USER, clean)
        hint = update_speaker_hint(state.speaker_hint, self.speaker_classifier.classify(clean))
        if hint != state.speaker_hint:
            logger.debug("speaker_hint_updated", speaker_hint=hint.value)
            state = state.with_speaker_hint(hint)

        # 4. Pending confirmation: no oracle call this turn
        if state.awaiting_confirmation:
            return self._handle_confirmation(state, clean)

        # 5. Outstanding "Intendi X?" on a task field. Anything but yes/no drops it.
        clarification = state.pending_clarification
        if clarification is not None:
            state = state.clear_clarification()
            reply = normalize_reply(clean)
            # "annulla" still cancels the whole task below.
            if state.active_task is not None and (reply in AFFIRMATIVE_REPLIES or reply == "no"):
                return self._settle_clarification(state, clarification, accepted=reply != "no")

        # 6. Active task intent
        if state.active_task is not None:
            intent = self.intent_classifier.classify(clean)
            if intent == UserIntent.CANCEL:
                label = TASK_LABELS[state.active_task.kind]
                logger.info("task_cancelled", task=state.active_task.kind)
                return self._reply(
                    state.clear_task(),
                    TurnReply(text=f"Ok, ho annullato la {label}. Come posso aiutarti?"),
                )
            if intent == UserIntent.PROCEED:
                if state.active_task.is_complete:
                    return self._complete_task(state)
                missing = ", ".join(state.active_task.required_missing)
                return self._reply(
                    state,
                    TurnReply(text=f"Mi mancano ancora: {missing}. Puoi dirmeli ora, oppure dire 'annulla'."),
                )

        # 7-11. Oracle round trip
        return self._consult_oracle(state, clean, suspicious)

    def _reply(self, state: DialogueState, result: TurnResult) -> tuple[DialogueState, TurnResult]:
        """Record the assistant side of the exchange and return."""
        return state.add_exchange(Role.ASSISTANT, _result_text(result)), result

    def _handle_confirmation(self, state: DialogueState, reply: str) -> tuple[DialogueState, TurnResult]:
        pending = state.pending_action
        # Cleared before interpreting the reply, so nothing stale survives a failure below.
        state = state.clear_pending()
        if pending is None:
            return self._reply(state, TurnReply(text="Non c'è nessuna azione in attesa."))

        normalized = normalize_reply(reply)
        if normalized in AFFIRMATIVE_REPLIES:
            self.audit.log_action(AuditEventType.ACTION_CONFIRMED, pending.action)
            return self._reply(state, TurnAction(action=pending.action, text=CONFIRMED_REPLY))
        if normalized in NEGATIVE_REPLIES:
            self.audit.log_action(AuditEventType.ACTION_REJECTED, pending.action)
            return self._reply(state, TurnReply(text=REJECTED_REPLY))

        logger.info("confirmation_unclear", action_type=pending.action.type)
        return self._reply(
            state.restore_pending(pending),
            TurnConfirmation(
                action=pending.action,
                text=UNCLEAR_CONFIRMATION_REPLY,
                confirmation_message=CONFIRMATION_REASK,
            ),
        )

    def _settle_clarification(
        self, state: DialogueState, clarification: FieldClarification, accepted: bool
    ) -> tuple[DialogueState, TurnResult]:
        """Bind the offered catalog entry, or keep what the user said without an id."""
        if accepted:
            value, entity_id = clarification.candidate_name, clarification.candidate_id
            text = f"Ok, {value}."
        else:
            value, entity_id = clarification.original_query, None
            text = f"Ok, registro '{value}' come indicato."
        # model_copy, since merge never clears the id of an earlier match.
        task = state.active_task.model_copy(
            update={clarification.field: value, f"{clarification.field}_id": entity_id}
        )
        logger.info("clarification_settled", field=clarification.field, accepted=accepted)
        if task.required_missing:
            text += f" Mi mancano ancora: {', '.join(task.required_missing)}."
        return self._reply(state.with_task(task), TurnReply(text=text))

    def _complete_task(self, state: DialogueState) -> tuple[DialogueState, TurnResult]:
        """Turn a complete task into its terminal action and drop the task."""
        task = state.active_task
        action: AssistantAction
        if isinstance(task, ProductCreationTask):
            action = CreateProduct(prefill=task.to_prefill())
            text = "Perfetto! Apro la schermata di creazione prodotto con i dati raccolti."
        elif isinstance(task, MaintenanceRegistrationTask):
            action = RegisterMaintenance(fields=task.to_prefill())
            text = f"Manutenzione pronta per la registrazione:\n{task.collected_summary()}"
        elif isinstance(task, MaintainerCreationTask):
            action = CreateMaintainer(fields=task.to_prefill())
            text = f"Manutentore pronto per la registrazione:\n{task.collected_summary()}"
        else:
            return self._reply(state, TurnReply(text="Nessun task attivo."))

        # The user's "procedi" is the confirmation for the collected record.
        self.audit.log_action(AuditEventType.ACTION_CONFIRMED, action)
        logger.info("task_completed", task=task.kind)
        return self._reply(state.clear_task(), TurnAction(action=action, text=text))

    def _consult_oracle(
        self,
        state: DialogueState,
        clean: str,
        suspicious: bool,
    ) -> tuple[DialogueState, TurnResult]:
        prompt = self.prompts.turn_prompt(state, clean, suspicious=suspicious)
        try:
            raw = self.oracle.complete(prompt)
        except OracleMalformedError as e:
            self.audit.log_error(f"Oracle answer unusable: {e.reason}", e)
            text = TRUNCATED_REPLY if e.reason == "truncated" else MALFORMED_REPLY
            return self._reply(state, TurnReply(text=text))
        except OracleUnavailableError as e:
            self.audit.log_error("Oracle unavailable", e)
            return self._reply(state, TurnReply(text=UNAVAILABLE_REPLY))
        except Exception as e:
            logger.error("oracle_call_failed", error_type=type(e).__name__, error=str(e)[:200])
            self.audit.log_error("Oracle call failed", e)
            return self._reply(state, TurnReply(text=UNAVAILABLE_REPLY))

        parsed = parse_reply(raw)
        self.audit.log_response(parsed.text, has_action=parsed.directive is not None)
        text = parsed.text
        directive = parsed.directive

        if directive is None:
            return self._reply(state, TurnReply(text=text or MALFORMED_REPLY))

        if directive.type in TASK_DIRECTIVES:
            state, notes = self._apply_task_directive(state, directive)
            return self._reply(state, TurnReply(text=_join(text, notes) or MALFORMED_REPLY))

        action = to_action(directive)
        if isinstance(action, SearchProducts) and isinstance(state.active_task, MaintenanceRegistrationTask):
            state, action, text = self._search_for_maintenance(state, action.query, text)

        if action is None:
            return self._reply(state, TurnReply(text=text or MALFORMED_REPLY))

        if suspicious and action.risk_level == RiskLevel.HIGH:
            logger.warning("high_risk_action_dropped", action_type=action.type)
            self.audit.log_action(AuditEventType.ACTION_REJECTED, action)
            return self._reply(state, TurnReply(text=text or MALFORMED_REPLY))

        # Risk gate
        self.audit.log_action(AuditEventType.ACTION_REQUESTED, action)
        if action.risk_level == RiskLevel.LOW:
            return self._reply(state, TurnAction(action=action, text=text))
        return self._reply(
            state.with_pending(action),
            TurnConfirmation(action=action, text=text, confirmation_message=confirmation_message(action)),
        )

    # ------------------------------------------------------------------
    # Internal task handling
    # ------------------------------------------------------------------

    def _apply_task_directive(
        self,
        state: DialogueState,
        directive: Directive,
    ) -> tuple[DialogueState, list[str]]:
        params = directive.params
        kind = directive.type

        if kind == DirectiveType.UPDATE_TASK:
            if state.active_task is None:
                logger.info("task_update_without_task")
                return state, []
            task, notes, clarification = self._merge_fields(
                state.active_task, parse_key_values(params), overwrite=True
            )
            return _with_task(state, task, clarification), notes

        fields: dict[str, str] = {}
        if kind == DirectiveType.START_PRODUCT_CREATION:
            task = ProductCreationTask()
            fields = parse_key_values(params)
        elif kind == DirectiveType.START_MAINTAINER_CREATION:
            task = MaintainerCreationTask()
            fields = parse_key_values(params)
        elif kind == DirectiveType.START_MAINTENANCE:
            product_id, _, product_name = (p.strip() for p in params.partition(":"))
            if not (product_id and product_name) and state.current_product is not None:
                product_id, product_name = state.current_product.id, state.current_product.name
            if not (product_id and product_name):
                logger.info("maintenance_task_without_product")
                return state, []
            task = MaintenanceRegistrationTask(product_id=product_id, product_name=product_name)
        else:
            return state, []

        if state.active_task is not None:
            logger.info("task_replaced", previous=state.active_task.kind, task=task.kind)
        else:
            logger.info("task_started", task=task.kind)
        task, notes, clarification = self._merge_fields(task, fields)
        return _with_task(state, task, clarification), notes

    def _merge_fields(
        self,
        task: ActiveTask,
        fields: dict[str, Any],
        overwrite: bool = False,
    ) -> tuple[ActiveTask, list[str], Optional[FieldClarification]]:
        """
        Resolve catalog-linked fields, then merge.

        Returns the merged task, notes for the user, and the first near match
        the user has to accept before it is stored.
        """
        updates = {normalize_field_name(k): v for k, v in fields.items()}
        notes: list[str] = []
        clarification: Optional[FieldClarification] = None
        unlinked: list[str] = []

        for field, entity_kind in _RESOLVED_FIELDS.get(type(task), {}).items():
            query = updates.get(field)
            if not isinstance(query, str) or not query.strip():
                continue
            result = self._resolve(entity_kind, query)
            if isinstance(result, Found):
                updates[field] = result.entity.name
                updates[f"{field}_id"] = result.entity.id
            elif isinstance(result, NotFound):
                # Keep the spoken text; the caller can still offer inline creation.
                notes.append(self._clarification(result))
                unlinked.append(f"{field}_id")
            else:
                # Left unset until the user picks or accepts a match.
                del updates[field]
                notes.append(self._clarification(result))
                if isinstance(result, NeedsConfirmation) and clarification is None:
                    clarification = FieldClarification(
                        field=field,
                        candidate_id=result.candidate.id,
                        candidate_name=result.candidate.name,
                        original_query=query,
                    )

        if isinstance(task, MaintenanceRegistrationTask) and isinstance(updates.get("type"), str):
            matched = match_maintenance_type(updates["type"])
            if isinstance(matched, Found):
                updates["type"] = matched.entity.value
            elif isinstance(matched, Ambiguous):
                del updates["type"]
                names = " o ".join(t.display_name.lower() for t in matched.candidates)
                notes.append(f"Intendi {names}?")

        merged = task.merge(updates, overwrite=overwrite)
        if merged.rejected:
            logger.info("task_fields_rejected", task=task.kind, fields=merged.rejected)
        task = merged.task
        if overwrite and unlinked:
            # An id from an earlier match must not outlive a corrected name.
            task = task.model_copy(update={key: None for key in unlinked})
        return task, notes, clarification

    def _resolve(self, entity_kind: str, query: str) -> ResolutionResult:
        if entity_kind == "location":
            return self.resolver.resolve_location(query)
        if entity_kind == "assignee":
            return self.resolver.resolve_assignee(query)
        return self.resolver.resolve_maintainer(query)

    @staticmethod
    def _clarification(result: ResolutionResult) -> str:
        if isinstance(result, NeedsConfirmation):
            return f"Intendi {result.candidate.name}?"
        if isinstance(result, Ambiguous):
            names = ", ".join(c.name for c in result.candidates)
            return f"Ho trovato più corrispondenze per '{result.original_query}': {names}. Quale intendi?"
        return f"'{result.original_query}' non è in anagrafica, lo registro come indicato."

    def _search_for_maintenance(
        self,
        state: DialogueState,
        query: str,
        text: str,
    ) -> tuple[DialogueState, Optional[AssistantAction], str]:
        """
        Search inside a maintenance registration instead of navigating away.

        One hit binds the product to the task; several hits are kept for
        disambiguation; a failing catalog falls back to a plain search action.
        """
        task = state.active_task
        if self.products is None or not isinstance(task, MaintenanceRegistrationTask):
            return state, SearchProducts(query=query), text
        try:
            results = self.products.search(query)
        except Exception as e:
            logger.warning("internal_search_failed", error_type=type(e).__name__)
            self.audit.log_error("Internal product search failed", e)
            return state, SearchProducts(query=query), text

        if not results:
            logger.debug("internal_search_empty", query=query[:100])
            return state, None, text
        if len(results) > 1:
            logger.debug("internal_search_multiple", count=len(results))
            return state.with_search_results(results), None, text

        product = results[0]
        bound = task.model_copy(update={"product_id": product.id, "product_name": product.name})
        state = state.with_task(bound).with_current_product(product)
        note = f"Ho trovato {product.name}. Procedo con la registrazione della manutenzione."
        return state, ShowProduct(product_id=product.id), _join(text, [note])
