"""Contracts package - export key models."""

from inventory_voice.contracts.actions import (
    AssistantAction,
    CreateMaintainer,
    CreateProduct,
    ErrorType,
    PrepareEmail,
    RegisterMaintenance,
    RiskLevel,
    ScanBarcode,
    SearchProducts,
    ShowMaintenanceList,
    ShowOverdueAlerts,
    ShowProduct,
    TurnAction,
    TurnConfirmation,
    TurnFailure,
    TurnReply,
    TurnResult,
)
from inventory_voice.contracts.audit import AuditEvent, AuditEventType
from inventory_voice.contracts.catalog import (
    Assignee,
    CatalogEntity,
    CatalogReader,
    InMemoryCatalog,
    InMemoryProductCatalog,
    Location,
    Maintainer,
    Product,
    ProductCatalog,
)
from inventory_voice.contracts.dialogue import (
    DialogueState,
    Exchange,
    FieldClarification,
    PendingAction,
    Role,
    SpeakerHint,
)
from inventory_voice.contracts.resolution import (
    Ambiguous,
    Found,
    NeedsConfirmation,
    NotFound,
    ResolutionResult,
)
from inventory_voice.contracts.sanitize import Clean, Rejected, SanitizeResult, Suspicious
from inventory_voice.contracts.tasks import (
    ActiveTask,
    MaintainerCreationTask,
    MaintenanceRegistrationTask,
    MaintenanceType,
    ProductCreationTask,
)

__all__ = [
    "ActiveTask",
    "Ambiguous",
    "Assignee",
    "AssistantAction",
    "AuditEvent",
    "AuditEventType",
    "CatalogEntity",
    "CatalogReader",
    "Clean",
    "CreateMaintainer",
    "CreateProduct",
    "DialogueState",
    "ErrorType",
    "Exchange",
    "FieldClarification",
    "Found",
    "InMemoryCatalog",
    "InMemoryProductCatalog",
    "Location",
    "Maintainer",
    "MaintainerCreationTask",
    "MaintenanceRegistrationTask",
    "MaintenanceType",
    "NeedsConfirmation",
    "NotFound",
    "PendingAction",
    "PrepareEmail",
    "Product",
    "ProductCatalog",
    "ProductCreationTask",
    "RegisterMaintenance",
    "Rejected",
    "ResolutionResult",
    "RiskLevel",
    "Role",
    "SanitizeResult",
    "ScanBarcode",
    "SearchProducts",
    "ShowMaintenanceList",
    "ShowOverdueAlerts",
    "ShowProduct",
    "SpeakerHint",
    "Suspicious",
    "TurnAction",
    "TurnConfirmation",
    "TurnFailure",
    "TurnReply",
    "TurnResult",
]
