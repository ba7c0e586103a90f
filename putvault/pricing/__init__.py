"""putvault.pricing: spot and premium quotes from an external oracle."""

from putvault.pricing.gateway import FeedPricingGateway as FeedPricingGateway
from putvault.pricing.gateway import PremiumModel as PremiumModel
from putvault.pricing.gateway import SpotFeed as SpotFeed
from putvault.pricing.protocols import PricingGateway as PricingGateway
from putvault.pricing.protocols import StubPricingGateway as StubPricingGateway
