import json

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from taskboard.database import get_store
from taskboard.gateway import execute_request
from taskboard.stores.base import TaskStore

router = APIRouter(tags=['graphql'])


class GraphQLRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str | None = None
    variables: dict | None = None
    operation_name: str | None = Field(default=None, alias='operationName')


@router.post('/graphql')
def graphql_post(data: GraphQLRequest, store: TaskStore = Depends(get_store)):
    status_code, payload = execute_request(store, data.query, data.variables, data.operation_name)
    return JSONResponse(status_code=status_code, content=payload)


@router.get('/graphql')
def graphql_get(
    query: str | None = Query(default=None),
    variables: str | None = Query(default=None),
    operation_name: str | None = Query(default=None, alias='operationName'),
    store: TaskStore = Depends(get_store),
):
    parsed_variables = None
    if variables:
        try:
            parsed_variables = json.loads(variables)
        except ValueError:
            return JSONResponse(status_code=400, content={'errors': [{'message': 'Variables are invalid JSON.'}]})
        if not isinstance(parsed_variables, dict):
            return JSONResponse(status_code=400, content={'errors': [{'message': 'Variables must be a JSON object.'}]})

    status_code, payload = execute_request(
        store,
        query,
        parsed_variables,
        operation_name,
        allow_mutations=False,
    )
    return JSONResponse(status_code=status_code, content=payload)
