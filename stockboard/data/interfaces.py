from abc import ABC, abstractmethod

from stockboard.models import VendorKind, VendorStats


class VendorSource(ABC):
    """
    Abstract Base Class for the statistics vendors.

    This interface lets the extractor drive the Groww and Yahoo Finance
    pipelines interchangeably: resolve a page URL, then parse the HTML the
    relay chain returned.
    """

    kind: VendorKind

    @property
    def display_name(self) -> str:
        return self.kind.display_name

    @abstractmethod
    async def build_url(self, symbol: str) -> str:
        """
        Returns the fully-resolved vendor page URL for a user-entered symbol.
        Never fails: a wrong guess simply yields a page without statistics.
        """
        pass

    @abstractmethod
    def parse(self, html: str) -> VendorStats:
        """
        Extracts the vendor's field set from a page.
        Must not raise; fields that cannot be located are None.
        """
        pass
