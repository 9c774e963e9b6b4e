"""Access to the per-run dependencies carried in the LangGraph config."""

from langchain_core.runnables import RunnableConfig

from letternest.services.container import ServiceContainer
from letternest.strategies import NewsletterTemplate


def services_from(config: RunnableConfig) -> ServiceContainer:
    return config["configurable"]["services"]


def template_from(config: RunnableConfig) -> NewsletterTemplate:
    return config["configurable"]["template"]


def run_config(services: ServiceContainer, template: NewsletterTemplate) -> RunnableConfig:
    """Build the config passed to ``ainvoke`` for one pipeline run."""
    return {"configurable": {"services": services, "template": template}}
