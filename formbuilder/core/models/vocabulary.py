"""Closed value sets carried by node attributes.

Each table maps every accepted spelling to the single value stored on a
node, so equal documents always hold equal attribute values whatever name
the user or an imported file used.
"""

from typing import Dict, FrozenSet

__all__ = [
    "QUESTION_DATA_TYPES",
    "FIELD_DATA_TYPES",
    "COLUMN_DATA_TYPES",
    "CLINICAL_TABLE_FIELD_ELEMENTS",
    "CLINICAL_ELEMENT_ALIASES",
    "TAG_NAMES",
    "BUTTON_ACTIONS",
    "tag_code",
    "tag_display",
    "action_code",
    "action_display",
]

# Questionnaire data types. The empty string is the dialect default and is
# what ``list-box`` (questions) and ``text`` (fields, columns) are stored as.
QUESTION_DATA_TYPES: Dict[str, str] = {
    "": "",
    "list-box": "",
    "listbox": "",
    "radio": "radio",
    "choice": "radio",
    "checkbox": "checkbox",
    "multichoice": "checkbox",
    "multi-select": "checkbox",
}
FIELD_DATA_TYPES: Dict[str, str] = {
    "": "",
    "text": "",
    "date": "date",
    "textarea": "textarea",
}
COLUMN_DATA_TYPES: Dict[str, str] = {
    "": "",
    "text": "",
    "date": "date",
}

# Element names a clinical <table> may hold; a table field's data_type is one of them.
CLINICAL_TABLE_FIELD_ELEMENTS: FrozenSet[str] = frozenset(
    {"textbox", "notes", "date", "future_date", "checkbox", "list", "radio", "snomedsubtextbox"}
)
CLINICAL_ELEMENT_ALIASES: Dict[str, str] = {"check": "checkbox", "textarea": "textbox"}

TAG_NAMES: Dict[str, str] = {
    "a": "Allergy",
    "adm": "Administrative",
    "adv": "Advice",
    "back": "Background",
    "comp": "Complaint",
    "cons": "Consultation",
    "current": "Current",
    "dh": "Drug History",
    "diag": "Diagnosis",
    "dict": "Dictation",
    "diet": "Diet",
    "doc": "Document",
    "email": "Email correspondence",
    "exam": "Examination",
    "exer": "Exercise History",
    "fh": "Family History",
    "inv": "Investigation",
    "num": "Numerical Data",
    "obs": "Observation",
    "out": "Outcome",
    "path": "Pathology Result",
    "pmh": "Past Medical History",
    "prephys": "Previous Physiotherapy History",
    "pres": "Prescription",
    "pres_a": "Prescription (Acute)",
    "presalt": "Prescription (Alternative)",
    "psh": "Past Surgical History",
    "radv": "Results Advice",
    "refi": "Referral (inbound)",
    "refo": "Referral (outbound)",
    "scr": "Screening",
    "serv": "Appointment Service",
    "sh": "Social History",
    "snap": "Snapshot",
    "stck": "Stock Dispensed",
    "symptoms": "Symptoms",
    "tm": "Treatment",
    "uri": "Urinalysis",
    "vacc": "Vaccination",
    "vis": "Visual acuity and refractive error",
    "vrec": "Vaccination Recording",
}
_TAG_CODES = {name: code for code, name in TAG_NAMES.items()}

BUTTON_ACTIONS: Dict[str, str] = {
    "AddExtraServices": "Add Extra Services",
    "AssignTask": "Assign Task",
    "CloseCase": "Close Case",
    "Discharge": "Discharge",
    "FollowUp": "Follow Up",
    "PathologyLabRequest": "Pathology Lab Request",
    "Prescribe": "Prescribe",
    "PrescribeRepeat": "Prescribe Repeat",
    "Print": "Print",
    "PrintFromTemplate": "Print From Template",
    "Refer": "Refer",
    "RequestObservation": "Request Observation",
    "RunTriggers": "Run Triggers",
    "RunTriggersAsync": "Run Triggers Async",
    "RunTriggersAsyncThenDischarge": "Run Triggers Async Then Discharge",
    "RunTriggersThenDischarge": "Run Triggers Then Discharge",
    "SendFollowUpRequest": "Send Follow Up Request",
    "SendFollowUpRequestAndDischarge": "Send Follow Up Request And Discharge",
    "StartPathway": "Start Pathway",
    "StartPathwayDef": "Start Pathway Definition",
}
_ACTION_CODES = {name: code for code, name in BUTTON_ACTIONS.items()}


def tag_display(code: str) -> str:
    """Return the display name of a category code (the code itself if unknown)."""
    return TAG_NAMES.get(code, code)


def tag_code(value: str) -> str:
    """Return the XML code for a category given as code or display name."""
    return _TAG_CODES.get(value, value)


def action_display(code: str) -> str:
    return BUTTON_ACTIONS.get(code, code)


def action_code(value: str) -> str:
    """Return the XML code for a button action given as code or display name."""
    return _ACTION_CODES.get(value, value)
