"""Built-in coaching catalog entries."""

from __future__ import annotations

from salescoach.domain.models import KnowledgeBase, SalesProcess, SalesProcessStep

DEFAULT_PROCESS_ID = "standard"

DEFAULT_SALES_PROCESS = SalesProcess(
    id=DEFAULT_PROCESS_ID,
    name="Standard 5-Step Sales Process",
    created_by="system",
    steps=[
        SalesProcessStep(
            name="Greeting & Rapport Building",
            description="Establish connection and build trust",
            key_behaviors=[
                "Warm and professional greeting",
                "Small talk to establish rapport",
                "Set agenda for the meeting",
                "Build initial trust",
            ],
        ),
        SalesProcessStep(
            name="Needs Discovery",
            description="Understand client pain points and goals through questions",
            key_behaviors=[
                "Ask open-ended questions",
                "Active listening",
                "Probe for pain points",
                "Understand budget and timeline",
                "Identify decision makers",
            ],
        ),
        SalesProcessStep(
            name="Product Presentation",
            description="Present solution matching their specific needs",
            key_behaviors=[
                "Tailor presentation to discovered needs",
                "Focus on benefits not features",
                "Use stories and examples",
                "Address specific pain points",
                "Demonstrate value clearly",
            ],
        ),
        SalesProcessStep(
            name="Objection Handling",
            description="Address concerns and hesitations professionally",
            key_behaviors=[
                "Listen to objections fully",
                "Validate concerns",
                "Provide evidence-based responses",
                "Reframe objections as opportunities",
                "Confirm resolution",
            ],
        ),
        SalesProcessStep(
            name="Closing",
            description="Ask for commitment and establish next steps",
            key_behaviors=[
                "Trial close throughout",
                "Ask for the sale directly",
                "Create urgency when appropriate",
                "Outline clear next steps",
                "Confirm commitment",
            ],
        ),
    ],
)


def empty_knowledge_base() -> KnowledgeBase:
    return KnowledgeBase()


__all__ = ["DEFAULT_PROCESS_ID", "DEFAULT_SALES_PROCESS", "empty_knowledge_base"]
