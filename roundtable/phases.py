"""The ten discussion phases and their static instructions."""

from roundtable.models import Topic

PHASES: tuple[str, ...] = (
    "introduction",
    "problem_analysis",
    "root_cause",
    "stakeholder_perspective",
    "solution_generation",
    "critical_evaluation",
    "risk_assessment",
    "implementation_planning",
    "success_metrics",
    "synthesis",
)

_PHASE_INSTRUCTIONS: dict[str, str] = {
    "introduction": (
        'Introduce yourself briefly in your role and give your first impression of "{title}". '
        "What stands out to you immediately?"
    ),
    "problem_analysis": (
        'Analyse the core problem or challenge of "{title}". '
        "What are the main pain points or opportunities?"
    ),
    "root_cause": (
        "Dig into the underlying causes. Why does this problem exist? "
        "Keep asking why until you reach the fundamental factors."
    ),
    "stakeholder_perspective": (
        "Look at this from the perspective of the different stakeholders. "
        "How are they affected and what are their interests?"
    ),
    "solution_generation": (
        "Generate concrete solutions or approaches. What are possible ways to tackle this?"
    ),
    "critical_evaluation": (
        "Ask critical questions about the proposed solutions. Why would they work or fail? "
        "What are the pitfalls?"
    ),
    "risk_assessment": (
        "Identify potential risks and challenges with 'what if' scenarios. "
        "What can go wrong and how do we mitigate it?"
    ),
    "implementation_planning": (
        "How would we implement this concretely? What are the next steps and who does what?"
    ),
    "success_metrics": (
        "How do we measure success? What are concrete KPIs and how do we monitor progress?"
    ),
    "synthesis": (
        "Summarise the most important insights. What are the key takeaways and recommendations?"
    ),
}


def phase_for(turn_number: int) -> str:
    """Map a 1-based phase position to its phase; anything past the table is synthesis."""
    if 1 <= turn_number <= len(PHASES):
        return PHASES[turn_number - 1]
    return PHASES[-1]


def phase_instructions(phase: str, topic: Topic) -> str:
    template = _PHASE_INSTRUCTIONS.get(phase, _PHASE_INSTRUCTIONS["synthesis"])
    return template.format(title=topic.title)
