from elucidario.api.router import EntityRouter
from elucidario.core.schemas import WORKSPACE_PARAM
from elucidario.services import MembershipService

members = EntityRouter(
    f"workspaces/{{{WORKSPACE_PARAM}}}/members", MembershipService, tags=["members"]
)
router = members.register_routes()
