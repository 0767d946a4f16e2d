"""
ISO 9001 standard functions: standard-mandated capabilities attached to processes.

unique functions exist once in the whole management system; per_process functions
exist at most once per process. Mandatory functions are attached automatically when
an eligible process is created or updated.
"""
from __future__ import annotations

from app.qms.modules.catalog.models import StandardFunction

ALL_PROCESS_TYPES = ("management", "operational", "support")

POLICY_MANAGEMENT_FUNCTION_ID = "fn-5.2-policy"

ISO_9001_FUNCTIONS: tuple[StandardFunction, ...] = (
    # Context
    StandardFunction(
        id="fn-4.1-context-analysis",
        name="Context analysis",
        clause_references=("4.1", "4.2"),
        description="Identify internal/external issues and interested parties (SWOT, PESTEL)",
        duplication_rule="unique",
        mandatory=True,
        category="context",
        eligible_process_types=("management",),
    ),
    StandardFunction(
        id="fn-4.3-qms-scope",
        name="QMS scope",
        clause_references=("4.3",),
        description="Determine the boundaries and applicability of the QMS",
        duplication_rule="unique",
        mandatory=True,
        category="context",
        eligible_process_types=("management",),
    ),
    StandardFunction(
        id="fn-4.4-process-management",
        name="Process management",
        clause_references=("4.4",),
        description="Define inputs, outputs, sequence, criteria and resources of the process",
        duplication_rule="per_process",
        mandatory=True,
        category="context",
        eligible_process_types=ALL_PROCESS_TYPES,
    ),
    StandardFunction(
        id="fn-6.1-risk-management",
        name="Risk and opportunity management",
        clause_references=("6.1",),
        description="Evaluate risks and opportunities of the process and plan actions to address them",
        duplication_rule="per_process",
        mandatory=True,
        category="context",
        eligible_process_types=ALL_PROCESS_TYPES,
    ),
    # Leadership
    StandardFunction(
        id="fn-5.1-leadership",
        name="Leadership and commitment",
        clause_references=("5.1",),
        description="Top management accountability for the effectiveness of the QMS",
        duplication_rule="unique",
        mandatory=True,
        category="leadership",
        eligible_process_types=("management",),
    ),
    StandardFunction(
        id=POLICY_MANAGEMENT_FUNCTION_ID,
        name="Quality policy management",
        clause_references=("5.2",),
        description="Establish, approve, communicate and maintain the quality policy and its axes",
        duplication_rule="unique",
        mandatory=True,
        category="leadership",
        eligible_process_types=("management",),
    ),
    StandardFunction(
        id="fn-5.3-roles",
        name="Roles and responsibilities",
        clause_references=("5.3",),
        description="Assign and communicate responsibilities and authorities for the process",
        duplication_rule="per_process",
        mandatory=True,
        category="leadership",
        eligible_process_types=ALL_PROCESS_TYPES,
    ),
    StandardFunction(
        id="fn-6.2-objectives",
        name="Quality objectives",
        clause_references=("6.2",),
        description="Set measurable quality objectives and plan how to achieve them",
        duplication_rule="per_process",
        mandatory=True,
        category="leadership",
        eligible_process_types=ALL_PROCESS_TYPES,
    ),
    StandardFunction(
        id="fn-6.3-change-planning",
        name="Planning of changes",
        clause_references=("6.3",),
        description="Carry out changes to the QMS in a planned manner",
        duplication_rule="unique",
        mandatory=False,
        category="leadership",
        eligible_process_types=("management",),
    ),
    # Support
    StandardFunction(
        id="fn-7.1-resources",
        name="Resource management",
        clause_references=("7.1.1", "7.1.2", "7.1.3", "7.1.4"),
        description="Determine and provide people, infrastructure and environment for the process",
        duplication_rule="per_process",
        mandatory=False,
        category="support",
        eligible_process_types=ALL_PROCESS_TYPES,
    ),
    StandardFunction(
        id="fn-7.1.5-measuring-resources",
        name="Monitoring and measuring resources",
        clause_references=("7.1.5",),
        description="Calibration and verification of monitoring and measuring equipment",
        duplication_rule="per_process",
        mandatory=False,
        category="support",
        eligible_process_types=("operational", "support"),
    ),
    StandardFunction(
        id="fn-7.2-competence",
        name="Competence and awareness",
        clause_references=("7.2", "7.3"),
        description="Training plans, skills matrix and awareness of personnel",
        duplication_rule="unique",
        mandatory=True,
        category="support",
        eligible_process_types=("support",),
    ),
    StandardFunction(
        id="fn-7.4-communication",
        name="Communication",
        clause_references=("7.4",),
        description="Internal and external communication plan",
        duplication_rule="unique",
        mandatory=False,
        category="support",
        eligible_process_types=("management", "support"),
    ),
    StandardFunction(
        id="fn-7.5-documented-information",
        name="Documented information control",
        clause_references=("7.5",),
        description="Create, update and control documented information",
        duplication_rule="unique",
        mandatory=True,
        category="support",
        eligible_process_types=("management", "support"),
    ),
    # Operation
    StandardFunction(
        id="fn-8.1-operational-control",
        name="Operational planning and control",
        clause_references=("8.1",),
        description="Plan and control the operational process and its criteria",
        duplication_rule="per_process",
        mandatory=True,
        category="operation",
        eligible_process_types=("operational",),
    ),
    StandardFunction(
        id="fn-8.2-customer-requirements",
        name="Customer requirements",
        clause_references=("8.2",),
        description="Customer communication, determination and review of requirements",
        duplication_rule="unique",
        mandatory=False,
        category="operation",
        eligible_process_types=("operational",),
    ),
    StandardFunction(
        id="fn-8.3-design",
        name="Design and development",
        clause_references=("8.3",),
        description="Design and development planning, inputs, controls, outputs and changes",
        duplication_rule="unique",
        mandatory=False,
        category="operation",
        eligible_process_types=("operational",),
    ),
    StandardFunction(
        id="fn-8.4-external-providers",
        name="External provider control",
        clause_references=("8.4",),
        description="Selection, evaluation and monitoring of external providers",
        duplication_rule="unique",
        mandatory=True,
        category="operation",
        eligible_process_types=("operational", "support"),
    ),
    StandardFunction(
        id="fn-8.5-production",
        name="Production and service provision",
        clause_references=("8.5", "8.6"),
        description="Controlled production, traceability, preservation and release",
        duplication_rule="per_process",
        mandatory=False,
        category="operation",
        eligible_process_types=("operational",),
    ),
    StandardFunction(
        id="fn-8.7-nonconforming-outputs",
        name="Nonconforming outputs",
        clause_references=("8.7",),
        description="Identify and control outputs that do not conform to requirements",
        duplication_rule="per_process",
        mandatory=True,
        category="operation",
        eligible_process_types=("operational",),
    ),
    # Performance evaluation
    StandardFunction(
        id="fn-9.1-monitoring",
        name="Monitoring and measurement",
        clause_references=("9.1.1", "9.1.3"),
        description="Process indicators, analysis and evaluation of results",
        duplication_rule="per_process",
        mandatory=True,
        category="performance",
        eligible_process_types=ALL_PROCESS_TYPES,
    ),
    StandardFunction(
        id="fn-9.1.2-customer-satisfaction",
        name="Customer satisfaction",
        clause_references=("9.1.2",),
        description="Monitor customer perception of the degree to which needs are fulfilled",
        duplication_rule="unique",
        mandatory=True,
        category="performance",
        eligible_process_types=("management", "operational"),
    ),
    StandardFunction(
        id="fn-9.2-internal-audit",
        name="Internal audit",
        clause_references=("9.2",),
        description="Audit programme, audit execution and reporting",
        duplication_rule="unique",
        mandatory=True,
        category="performance",
        eligible_process_types=("management",),
    ),
    StandardFunction(
        id="fn-9.3-management-review",
        name="Management review",
        clause_references=("9.3",),
        description="Periodic review of the QMS by top management",
        duplication_rule="unique",
        mandatory=True,
        category="performance",
        eligible_process_types=("management",),
    ),
    # Improvement
    StandardFunction(
        id="fn-10.2-corrective-action",
        name="Nonconformity and corrective action",
        clause_references=("10.2",),
        description="React to nonconformities, correct them and review the effectiveness of actions",
        duplication_rule="unique",
        mandatory=True,
        category="improvement",
        eligible_process_types=("management",),
    ),
    StandardFunction(
        id="fn-10.3-continual-improvement",
        name="Continual improvement",
        clause_references=("10.1", "10.3"),
        description="Select improvement opportunities and follow them up",
        duplication_rule="per_process",
        mandatory=False,
        category="improvement",
        eligible_process_types=ALL_PROCESS_TYPES,
    ),
)
