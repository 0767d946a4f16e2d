"""
ISO 9001:2015 requirement inventory.

Clauses 1-3 (scope, normative references, terms) are not allocatable and are left out.

- generic: pre-allocated to every process through its governance activity
- duplicable: may be allocated to any number of activities
- unique: meant to live on exactly one activity system-wide
"""
from __future__ import annotations

from app.qms.modules.catalog.models import Requirement


def _req(clause: str, title: str, description: str, type_: str) -> Requirement:
    return Requirement(
        id=f"req-{clause}",
        clause_number=clause,
        clause_title=title,
        description=description,
        type=type_,
    )


GENERIC_REQUIREMENTS: tuple[Requirement, ...] = (
    # Clause 4 - Context
    _req("4.1", "Understanding the organization and its context",
         "Determine external and internal issues relevant to the organization's purpose and strategic direction", "generic"),
    _req("4.2", "Understanding the needs and expectations of interested parties",
         "Determine interested parties and their relevant requirements", "generic"),
    _req("4.4", "Quality management system and its processes",
         "Establish, implement, maintain and continually improve the QMS including needed processes", "generic"),
    # Clause 5 - Leadership (system-wide aspects)
    _req("5.1.1", "Leadership and commitment (general)",
         "Top management shall demonstrate leadership and commitment with respect to the QMS", "generic"),
    _req("5.1.2", "Customer focus",
         "Top management shall demonstrate leadership and commitment with respect to customer focus", "generic"),
    _req("5.3", "Organizational roles, responsibilities and authorities",
         "Top management shall ensure responsibilities and authorities are assigned, communicated and understood", "generic"),
    # Clause 6 - Planning
    _req("6.1", "Actions to address risks and opportunities",
         "Plan actions to address risks and opportunities that can affect conformity and customer satisfaction", "generic"),
    _req("6.2", "Quality objectives and planning to achieve them",
         "Establish quality objectives at relevant functions, levels and processes", "generic"),
    _req("6.3", "Planning of changes",
         "When changes to the QMS are needed, they shall be carried out in a planned manner", "generic"),
    # Clause 7 - Support (process-level application)
    _req("7.1.6", "Organizational knowledge",
         "Determine the knowledge necessary for the operation of processes and achievement of conformity", "generic"),
    _req("7.5.1", "Documented information - general",
         "The QMS shall include documented information required by the standard and determined necessary", "generic"),
    _req("7.5.2", "Creating and updating documented information",
         "Ensure appropriate identification, format, review and approval of documented information", "generic"),
    _req("7.5.3", "Control of documented information",
         "Documented information shall be controlled to ensure availability, suitability and protection", "generic"),
    # Clause 9 - Performance evaluation (process view)
    _req("9.1.1", "Monitoring, measurement, analysis and evaluation - general",
         "Determine what needs to be monitored and measured, methods, and when to analyze results", "generic"),
    _req("9.1.3", "Analysis and evaluation",
         "Analyze and evaluate appropriate data and information from monitoring and measurement", "generic"),
    # Clause 10 - Improvement
    _req("10.1", "General (improvement)",
         "Determine and select opportunities for improvement and implement necessary actions", "generic"),
    _req("10.3", "Continual improvement",
         "Continually improve the suitability, adequacy and effectiveness of the QMS", "generic"),
)

DUPLICABLE_REQUIREMENTS: tuple[Requirement, ...] = (
    _req("7.1.1", "Resources - general", "Determine and provide the resources needed for the QMS", "duplicable"),
    _req("7.1.2", "People", "Determine and provide the persons necessary for effective QMS implementation", "duplicable"),
    _req("7.1.3", "Infrastructure",
         "Determine, provide and maintain the infrastructure necessary for operation of processes", "duplicable"),
    _req("7.1.4", "Environment for the operation of processes",
         "Determine, provide and maintain the environment necessary for operation of processes", "duplicable"),
    _req("7.1.5.1", "Monitoring and measuring resources - general",
         "Determine and provide resources needed to ensure valid monitoring and measurement results", "duplicable"),
    _req("7.1.5.2", "Measurement traceability",
         "Measuring equipment shall be calibrated or verified against traceable standards", "duplicable"),
    _req("7.2", "Competence",
         "Determine necessary competence, ensure persons are competent, and retain documented information", "duplicable"),
    _req("7.3", "Awareness",
         "Ensure relevant persons are aware of quality policy, objectives, and contribution to QMS", "duplicable"),
    _req("7.4", "Communication", "Determine internal and external communications relevant to the QMS", "duplicable"),
    _req("8.1", "Operational planning and control",
         "Plan, implement and control processes needed to meet requirements for provision of products/services", "duplicable"),
    _req("8.2.1", "Customer communication",
         "Establish processes for communicating with customers about products/services", "duplicable"),
    _req("8.2.2", "Determining requirements for products and services",
         "Determine requirements for products and services, including applicable regulations", "duplicable"),
    _req("8.2.3", "Review of requirements for products and services",
         "Review requirements before commitment to supply products/services", "duplicable"),
    _req("8.3.1", "Design and development - general",
         "Establish, implement and maintain a design and development process when required", "duplicable"),
    _req("8.3.2", "Design and development planning",
         "Consider the nature, duration and complexity of design and development activities", "duplicable"),
    _req("8.3.3", "Design and development inputs",
         "Determine requirements essential for the specific types of products/services being designed", "duplicable"),
    _req("8.3.4", "Design and development controls",
         "Apply controls to the design and development process to ensure requirements are met", "duplicable"),
    _req("8.3.5", "Design and development outputs",
         "Ensure design and development outputs meet input requirements", "duplicable"),
    _req("8.3.6", "Design and development changes",
         "Identify, review and control changes made during or after design and development", "duplicable"),
    _req("8.4.1", "Control of externally provided processes, products and services - general",
         "Ensure externally provided processes, products and services conform to requirements", "duplicable"),
    _req("8.4.2", "Type and extent of control",
         "Determine the controls to be applied to externally provided processes, products and services", "duplicable"),
    _req("8.4.3", "Information for external providers",
         "Communicate to external providers applicable requirements", "duplicable"),
    _req("8.5.1", "Control of production and service provision",
         "Implement production and service provision under controlled conditions", "duplicable"),
    _req("8.5.2", "Identification and traceability",
         "Use suitable means to identify outputs and traceability requirements", "duplicable"),
    _req("8.5.3", "Property belonging to customers or external providers",
         "Exercise care with property belonging to customers or external providers", "duplicable"),
    _req("8.5.4", "Preservation",
         "Preserve outputs during production and service provision to ensure conformity", "duplicable"),
    _req("8.5.5", "Post-delivery activities",
         "Meet requirements for post-delivery activities associated with products and services", "duplicable"),
    _req("8.5.6", "Control of changes",
         "Review and control changes for production or service provision to ensure conformity", "duplicable"),
    _req("8.6", "Release of products and services",
         "Implement planned arrangements to verify that product/service requirements have been met", "duplicable"),
    _req("8.7", "Control of nonconforming outputs",
         "Ensure outputs not conforming to requirements are identified and controlled", "duplicable"),
    _req("9.1.2", "Customer satisfaction",
         "Monitor customers' perceptions of the degree to which their needs and expectations have been fulfilled", "duplicable"),
)

UNIQUE_REQUIREMENTS: tuple[Requirement, ...] = (
    _req("5.2", "Quality policy",
         "Establish, implement and maintain a quality policy appropriate to the organization", "unique"),
    _req("5.2.1", "Establishing the quality policy",
         "Top management shall establish a quality policy appropriate to the purpose and context", "unique"),
    _req("5.2.2", "Communicating the quality policy",
         "The quality policy shall be available, communicated, understood and applied", "unique"),
    _req("9.2", "Internal audit",
         "Conduct internal audits at planned intervals to provide information on QMS conformity", "unique"),
    _req("9.3", "Management review", "Top management shall review the QMS at planned intervals", "unique"),
    _req("10.2", "Nonconformity and corrective action",
         "React to nonconformities, evaluate need for action, implement action, review effectiveness", "unique"),
)

ISO9001_REQUIREMENTS: tuple[Requirement, ...] = GENERIC_REQUIREMENTS + DUPLICABLE_REQUIREMENTS + UNIQUE_REQUIREMENTS
