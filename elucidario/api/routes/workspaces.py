from elucidario.api.router import EntityRouter
from elucidario.core.schemas import WORKSPACE_PARAM
from elucidario.services import WorkspaceService

# The item parameter doubles as the workspace scope of the request.
workspaces = EntityRouter("workspaces", WorkspaceService, id_param=WORKSPACE_PARAM)
router = workspaces.register_routes()
