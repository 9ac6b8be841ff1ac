"""GraphQL documents for the Railway public API.

One query per operation; the response path of each list is recorded next to
it so the client can walk ``data`` without per-call probing.
"""

from __future__ import annotations

CONNECTION_CHECK = """
query {
    __typename
}
"""

PROJECTS = """
query {
    projects {
        edges {
            node {
                id
                name
                description
                createdAt
                updatedAt
            }
        }
    }
}
"""
PROJECTS_PATH = ("projects",)

ENVIRONMENTS = """
query($projectId: String!) {
    project(id: $projectId) {
        environments {
            edges {
                node {
                    id
                    name
                }
            }
        }
    }
}
"""
ENVIRONMENTS_PATH = ("project", "environments")

SERVICES = """
query($projectId: String!) {
    project(id: $projectId) {
        services {
            edges {
                node {
                    id
                    name
                }
            }
        }
    }
}
"""
SERVICES_PATH = ("project", "services")

DEPLOYMENTS = """
query($serviceId: String!, $environmentId: String!, $first: Int!) {
    deployments(
        input: {serviceId: $serviceId, environmentId: $environmentId},
        first: $first
    ) {
        edges {
            node {
                id
                status
                staticUrl
                createdAt
                updatedAt
            }
        }
    }
}
"""
DEPLOYMENTS_PATH = ("deployments",)

DEPLOYMENT_STATUS = """
query($deploymentId: String!) {
    deployment(id: $deploymentId) {
        status
        createdAt
        updatedAt
    }
}
"""

DEPLOYMENT_LOGS = """
query($deploymentId: String!, $limit: Int!) {
    deploymentLogs(deploymentId: $deploymentId, limit: $limit) {
        message
        timestamp
        severity
    }
}
"""
DEPLOYMENT_LOGS_PATH = ("deploymentLogs",)

APPLICATION_LOGS = """
query($serviceId: String!, $environmentId: String!, $limit: Int!) {
    logs(serviceId: $serviceId, environmentId: $environmentId, limit: $limit) {
        message
        timestamp
        severity
    }
}
"""
APPLICATION_LOGS_PATH = ("logs",)
