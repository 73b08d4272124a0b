"""LLM identities that neuron steps reference."""

from studio.models.base import StudioModel


class NeuronInfo(StudioModel):
    """A configured LLM binding."""

    neuron_id: str
    name: str
    description: str | None = None
    provider: str
    model: str
    role: str = "chat"
