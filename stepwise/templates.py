"""Built-in workflow templates installed on first start."""

from __future__ import annotations

from typing import Any, Dict, List

CI_CD_PIPELINE: Dict[str, Any] = {
    "id": "netlify-ci-cd-pipeline",
    "name": "Complete CI/CD Pipeline",
    "description": "Full CI/CD pipeline with testing, building, and deployment",
    "category": "deployment",
    "tags": ["ci-cd", "testing", "deployment"],
    "arguments": [
        {"name": "repositoryPath", "type": "string", "description": "Path to repository", "required": True},
        {"name": "siteId", "type": "string", "description": "Netlify site ID", "required": True},
        {"name": "branch", "type": "string", "description": "Branch to deploy", "defaultValue": "main"},
        {"name": "environment", "type": "string", "description": "Target environment", "defaultValue": "production"},
        {"name": "runTests", "type": "boolean", "description": "Run tests before deployment", "defaultValue": True},
    ],
    "steps": [
        {
            "id": "validate-repo",
            "name": "Validate Repository",
            "description": "Check that a repository path was given",
            "type": "condition",
            "condition": "len(variables.repositoryPath) > 0",
            "onSuccess": "install-dependencies",
            "onFailure": "report-error",
        },
        {
            "id": "install-dependencies",
            "name": "Install Dependencies",
            "description": "Install project dependencies",
            "type": "tool",
            "tool": "shell_execute",
            "parameters": {"command": "npm ci", "cwd": "${repositoryPath}"},
            "onSuccess": "run-tests",
            "onFailure": "report-error",
        },
        {
            "id": "run-tests",
            "name": "Run Tests",
            "description": "Decide whether the test suite runs",
            "type": "condition",
            "condition": "arguments.runTests",
            "onSuccess": "execute-tests",
            "onFailure": "build-project",
        },
        {
            "id": "execute-tests",
            "name": "Execute Tests",
            "description": "Run the test command",
            "type": "tool",
            "tool": "shell_execute",
            "parameters": {"command": "npm test", "cwd": "${repositoryPath}"},
            "onSuccess": "build-project",
            "onFailure": "report-error",
        },
        {
            "id": "build-project",
            "name": "Build Project",
            "description": "Build the project for deployment",
            "type": "tool",
            "tool": "netlify_build_site",
            "parameters": {"siteId": "${siteId}"},
            "onSuccess": "deploy-site",
            "onFailure": "report-error",
        },
        {
            "id": "deploy-site",
            "name": "Deploy to Netlify",
            "description": "Deploy the built site",
            "type": "tool",
            "tool": "netlify_deploy_site",
            "parameters": {
                "path": "${repositoryPath}/dist",
                "environment": "${environment}",
                "message": "Automated deployment from ${branch}",
            },
            "onSuccess": "verify-deployment",
            "onFailure": "report-error",
        },
        {
            "id": "verify-deployment",
            "name": "Verify Deployment",
            "description": "Verify the deployment was successful",
            "type": "tool",
            "tool": "netlify_get_site_info",
            "parameters": {"siteId": "${siteId}"},
            "onSuccess": "notify-success",
            "onFailure": "report-error",
        },
        {
            "id": "notify-success",
            "name": "Notify Success",
            "description": "Send success notification",
            "type": "tool",
            "tool": "send_notification",
            "parameters": {"message": "Deployment successful for ${siteId}", "type": "success"},
        },
        {
            "id": "report-error",
            "name": "Report Error",
            "description": "Report deployment error",
            "type": "tool",
            "tool": "send_notification",
            "parameters": {"message": "Deployment failed: ${lastError}", "type": "error"},
        },
    ],
    "errorHandling": {"strategy": "continue"},
}

SITE_HEALTH_CHECK: Dict[str, Any] = {
    "id": "site-health-check",
    "name": "Site Health Check",
    "description": "Comprehensive site health monitoring",
    "category": "monitoring",
    "tags": ["health", "monitoring", "diagnostics"],
    "arguments": [
        {"name": "siteId", "type": "string", "description": "Site ID to check", "required": True},
        {"name": "checkFunctions", "type": "boolean", "description": "Check functions", "defaultValue": True},
        {"name": "checkForms", "type": "boolean", "description": "Check forms", "defaultValue": True},
    ],
    "steps": [
        {
            "id": "get-site-info",
            "name": "Get Site Information",
            "description": "Retrieve basic site information",
            "type": "tool",
            "tool": "netlify_get_site_info",
            "parameters": {"siteId": "${siteId}"},
            "onSuccess": "check-recent-deploys",
        },
        {
            "id": "check-recent-deploys",
            "name": "Check Recent Deploys",
            "description": "Check the status of recent deployments",
            "type": "tool",
            "tool": "netlify_list_deploys",
            "parameters": {"siteId": "${siteId}"},
            "onSuccess": "check-functions",
        },
        {
            "id": "check-functions",
            "name": "Check Functions",
            "description": "Decide whether functions are inspected",
            "type": "condition",
            "condition": "arguments.checkFunctions",
            "onSuccess": "list-functions",
            "onFailure": "check-forms",
        },
        {
            "id": "list-functions",
            "name": "List Functions",
            "description": "Get function list and status",
            "type": "tool",
            "tool": "netlify_list_functions",
            "parameters": {"siteId": "${siteId}"},
            "onSuccess": "check-forms",
        },
        {
            "id": "check-forms",
            "name": "Check Forms",
            "description": "Decide whether form submissions are inspected",
            "type": "condition",
            "condition": "arguments.checkForms",
            "onSuccess": "get-form-submissions",
            "onFailure": "check-env-vars",
        },
        {
            "id": "get-form-submissions",
            "name": "Get Form Submissions",
            "description": "Retrieve recent form submissions",
            "type": "tool",
            "tool": "netlify_get_form_submissions",
            "parameters": {"siteId": "${siteId}"},
            "onSuccess": "check-env-vars",
        },
        {
            "id": "check-env-vars",
            "name": "Check Environment Variables",
            "description": "Validate environment configuration",
            "type": "tool",
            "tool": "netlify_get_env_var",
            "parameters": {"siteId": "${siteId}", "key": "NODE_ENV"},
            "onSuccess": "generate-report",
        },
        {
            "id": "generate-report",
            "name": "Generate Health Report",
            "description": "Compile health check report",
            "type": "tool",
            "tool": "generate_health_report",
            "parameters": {
                "siteId": "${siteId}",
                "functionsChecked": "${checkFunctions}",
                "formsChecked": "${checkForms}",
            },
        },
    ],
}

DEFAULT_TEMPLATES: List[Dict[str, Any]] = [CI_CD_PIPELINE, SITE_HEALTH_CHECK]
