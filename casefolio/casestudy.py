from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Doc(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        protected_namespaces=(),
    )


class ProcessStep(_Doc):
    title: str = ""
    description: str = ""


class AutomationStep(ProcessStep):
    automation: str | None = None


class Metric(_Doc):
    label: str = ""
    value: str = ""
    trend: str | None = None


class ImprovementMetric(Metric):
    improvement: str | None = None


class Challenge(_Doc):
    issue: str = ""
    solution: str = ""


# Shared sections (data-science uses these as-is)

class Overview(_Doc):
    summary: str = ""
    role: str = ""
    timeline: str = ""
    team_size: int | None = None


class Problem(_Doc):
    statement: str = ""
    business_context: str | None = None
    goals: list[str] = []


class Methodology(_Doc):
    approach: str = ""
    process_steps: list[ProcessStep] = []


class Results(_Doc):
    metrics: list[Metric] = []
    impact: str = ""
    learnings: list[str] = []


class DataScienceCaseStudy(_Doc):
    overview: Overview = Field(default_factory=Overview)
    problem: Problem = Field(default_factory=Problem)
    methodology: Methodology = Field(default_factory=Methodology)
    results: Results = Field(default_factory=Results)


# data-visualization

class VizOverview(Overview):
    client: str | None = None
    audience: str | None = None


class VizProblem(Problem):
    user_needs: list[str] = []
    data_complexity: str | None = None


class VizMethodology(Methodology):
    design_principles: list[str] = []


class PaletteColor(_Doc):
    name: str = ""
    hex: str = ""
    usage: str = ""


class Design(_Doc):
    color_palette: list[PaletteColor] = []
    visual_hierarchy: str = ""
    interactivity: str = ""
    accessibility: str = ""


class VisualizationItem(_Doc):
    type: str = ""
    purpose: str = ""
    insight: str = ""


class VizImplementation(_Doc):
    data_processing: str = ""
    visualization: list[VisualizationItem] = []
    challenges: list[Challenge] = []


class VizResults(Results):
    user_feedback: list[str] = []
    business_outcome: str | None = None


class DataVizCaseStudy(_Doc):
    overview: VizOverview = Field(default_factory=VizOverview)
    problem: VizProblem = Field(default_factory=VizProblem)
    methodology: VizMethodology = Field(default_factory=VizMethodology)
    design: Design = Field(default_factory=Design)
    implementation: VizImplementation = Field(default_factory=VizImplementation)
    results: VizResults = Field(default_factory=VizResults)


# ai-automation

class AutomationOverview(Overview):
    context: str | None = None


class ManualProcess(_Doc):
    description: str = ""
    time_per_task: str = ""
    frequency: str = ""
    error_rate: str = ""
    annual_cost: str = ""


class AutomationProblem(Problem):
    manual_process: ManualProcess = Field(default_factory=ManualProcess)


class AutomationMethodology(Methodology):
    process_steps: list[AutomationStep] = []
    tools: list[str] = []


class WorkflowStep(_Doc):
    step: str = ""
    trigger: str = ""
    action: str = ""
    output: str = ""


class AutomationImplementation(_Doc):
    workflow: list[WorkflowStep] = []
    challenges: list[Challenge] = []
    integration: str = ""
    testing: str = ""
    next_steps: list[str] = []


class Roi(_Doc):
    time_saved: str = ""
    cost_savings: str = ""
    payback_period: str = ""
    annual_value: str = ""


class AutomationResults(Results):
    metrics: list[ImprovementMetric] = []
    roi: Roi = Field(default_factory=Roi)


class Maintenance(_Doc):
    monitoring: list[str] = []
    updates: str = ""
    scalability: str = ""


class Contact(_Doc):
    email: str = ""
    phone: str = ""


class AutomationCaseStudy(_Doc):
    overview: AutomationOverview = Field(default_factory=AutomationOverview)
    problem: AutomationProblem = Field(default_factory=AutomationProblem)
    methodology: AutomationMethodology = Field(default_factory=AutomationMethodology)
    implementation: AutomationImplementation = Field(
        default_factory=AutomationImplementation
    )
    results: AutomationResults = Field(default_factory=AutomationResults)
    maintenance: Maintenance = Field(default_factory=Maintenance)
    contact: Contact = Field(default_factory=Contact)


# ai-engineering

class EngineeringOverview(Overview):
    business_context: str | None = None


class EngineeringProblem(Problem):
    constraints: list[str] = []
    stakeholders: list[str] = []


class Component(_Doc):
    name: str = ""
    description: str = ""
    tech: list[str] = []


class Architecture(_Doc):
    components: list[Component] = []


class EngineeringMethodology(Methodology):
    architecture: Architecture = Field(default_factory=Architecture)
    architecture_image: str | None = None


class EngineeringImplementation(_Doc):
    data_strategy: str = ""
    model_details: str = ""
    pipeline: list[str] = []
    challenges: list[Challenge] = []


class EngineeringResults(Results):
    metrics: list[ImprovementMetric] = []
    business_value: str | None = None


class Deployment(_Doc):
    infrastructure: str = ""
    monitoring: list[str] = []
    scalability: str = ""


class Learnings(_Doc):
    technical: list[str] = []
    business: list[str] = []


class EngineeringCaseStudy(_Doc):
    overview: EngineeringOverview = Field(default_factory=EngineeringOverview)
    problem: EngineeringProblem = Field(default_factory=EngineeringProblem)
    methodology: EngineeringMethodology = Field(default_factory=EngineeringMethodology)
    implementation: EngineeringImplementation = Field(
        default_factory=EngineeringImplementation
    )
    results: EngineeringResults = Field(default_factory=EngineeringResults)
    deployment: Deployment = Field(default_factory=Deployment)
    learnings: Learnings = Field(default_factory=Learnings)


CaseStudy = DataScienceCaseStudy | DataVizCaseStudy | AutomationCaseStudy | EngineeringCaseStudy

CASE_STUDY_MODELS: dict[str, type[_Doc]] = {
    "data-science": DataScienceCaseStudy,
    "data-visualization": DataVizCaseStudy,
    "ai-automation": AutomationCaseStudy,
    "ai-engineering": EngineeringCaseStudy,
}


def case_study_model(category: str | None) -> type[_Doc]:
    return CASE_STUDY_MODELS.get(category or "", DataScienceCaseStudy)


def parse_case_study(category: str | None, data: dict[str, Any] | None) -> CaseStudy:
    return case_study_model(category).model_validate(data or {})
