"""
Receipt Template Registry

Central registry for resolving template keys to receipt template factories.
"""

from typing import Callable

from .interfaces import IReceiptTemplate


TemplateFactory = Callable[[], IReceiptTemplate]


class ReceiptTemplateRegistry:
    """Registry for receipt templates"""

    def __init__(self):
        self._templates: dict[str, TemplateFactory] = {}

    def register(self, template_key: str, template_factory: TemplateFactory) -> None:
        """
        Register a receipt template.

        Args:
            template_key: Unique identifier for the template (e.g., 'default')
            template_factory: Factory (usually the template class) returning a new template
        """
        if template_key in self._templates:
            raise ValueError(f"Receipt template '{template_key}' is already registered")
        self._templates[template_key] = template_factory

    def get_factory(self, template_key: str) -> TemplateFactory:
        """
        Get the factory registered for a template key.

        Raises:
            KeyError: If the template key is not registered
        """
        if template_key not in self._templates:
            raise KeyError(f"Receipt template '{template_key}' not found")
        return self._templates[template_key]

    def get_template(self, template_key: str) -> IReceiptTemplate:
        """Get a new template instance by its key"""
        return self.get_factory(template_key)()

    def is_registered(self, template_key: str) -> bool:
        """Check if a template key is registered"""
        return template_key in self._templates

    def list_templates(self) -> list[str]:
        """List all registered template keys"""
        return list(self._templates.keys())


# Global registry instance
_registry = ReceiptTemplateRegistry()


def register_template(template_key: str, template_factory: TemplateFactory) -> None:
    """Register a receipt template in the global registry"""
    _registry.register(template_key, template_factory)


def get_template_factory(template_key: str) -> TemplateFactory:
    """Get a template factory from the global registry"""
    return _registry.get_factory(template_key)


def is_registered(template_key: str) -> bool:
    """Check if a template key is registered"""
    return _registry.is_registered(template_key)


def list_templates() -> list[str]:
    """List all registered template keys"""
    return _registry.list_templates()
