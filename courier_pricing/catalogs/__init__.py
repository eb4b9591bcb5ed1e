from .base import (  # noqa
    CustomerPricingCatalog,
    PromotionalCatalog,
    RuleCatalog,
    RuleCatalogError,
)
from .memory import (  # noqa
    InMemoryCustomerPricingCatalog,
    InMemoryPromotionalCatalog,
    InMemoryRuleCatalog,
)
from .yaml_file import YamlRuleCatalog  # noqa
