"""Owner dashboard view models."""

from pydantic import BaseModel, Field

from qrmenu.models.menu import MenuItem


class DashboardCategory(BaseModel):
    """A category as the owner sees it, disabled ones included."""

    id: str
    name: str = ""
    enabled: bool = True
    items: list[MenuItem] = Field(default_factory=list)


class DashboardView(BaseModel):
    """Full categories x items view rendered after every snapshot."""

    restaurant_id: str | None = None
    restaurant_name: str = ""
    public_menu_url: str = ""
    state: str = "unlinked"
    status: str = ""
    categories: list[DashboardCategory] = Field(default_factory=list)
