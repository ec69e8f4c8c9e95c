"""Architecture archetype selection and developer workflow steps."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..models import (
    DeploymentOption,
    DevStep,
    FileAnalysis,
    PackageManifest,
    TechStackEntry,
    WorkflowArchetype,
)
from .utils import build_install_command, build_node_script_command, detect_node_package_manager

NEXT = "Next.js Fullstack"
MERN = "MERN Stack"
EXPRESS_MONGO = "Express + MongoDB Backend"
EXPRESS = "Express.js API"
REACT = "React Frontend"
GENERIC = "JavaScript Project"

_NODE_BACKEND_DEPLOYMENT = DeploymentOption(
    platform="Railway/Render",
    reason="Good for Node.js backends with database",
    steps=["Set environment variables", "Connect MongoDB Atlas"],
)

_ARCHETYPES: Dict[str, dict] = {
    NEXT: {
        "description": "Full-stack React application with server-side rendering",
        "flow_steps": [
            "Browser Request",
            "Next.js Router",
            "Page Component",
            "API Routes (if needed)",
            "Database (if connected)",
            "Server-Side Rendering",
            "Response to Browser",
        ],
        "key_files": [
            "pages/_app.js - App wrapper",
            "pages/index.js - Home page",
            "pages/api/ - API endpoints",
            "components/ - React components",
        ],
        "summary": "Request → Next Router → Page/API Route → SSR/Data Fetch → Response",
        "deployment_options": [
            DeploymentOption(
                platform="Vercel",
                reason="Optimized for Next.js applications",
                steps=["Connect GitHub repo", "Auto-deploy on push"],
            )
        ],
    },
    MERN: {
        "description": "MongoDB, Express, React, Node.js full-stack application",
        "flow_steps": [
            "React Frontend",
            "HTTP Request (Axios/Fetch)",
            "Express Router",
            "Controller Logic",
            "Mongoose Model",
            "MongoDB Database",
            "JSON Response",
            "React State Update",
        ],
        "key_files": [
            "server.js - Express server",
            "routes/ - API endpoints",
            "models/ - Mongoose schemas",
            "src/components/ - React components",
        ],
        "summary": (
            "React Component → API Call → Express Route → Controller → Mongoose Model"
            " → MongoDB → Response → State Update"
        ),
        "deployment_options": [_NODE_BACKEND_DEPLOYMENT],
    },
    EXPRESS_MONGO: {
        "description": "RESTful API server with MongoDB database",
        "flow_steps": [
            "Client Request",
            "Express Middleware",
            "Route Handler",
            "Controller Logic",
            "Mongoose Model",
            "MongoDB Operation",
            "JSON Response",
        ],
        "key_files": [
            "server.js - Main server file",
            "routes/ - API routes",
            "models/ - Database models",
            "middleware/ - Custom middleware",
        ],
        "summary": "Request → Middleware → Route → Controller → Model → Database → Response",
        "deployment_options": [_NODE_BACKEND_DEPLOYMENT],
    },
    EXPRESS: {
        "description": "RESTful API server built with Express.js",
        "flow_steps": [
            "HTTP Request",
            "Express Middleware",
            "Route Handler",
            "Business Logic",
            "Data Processing",
            "JSON Response",
        ],
        "key_files": [
            "server.js - Express server",
            "routes/ - API endpoints",
            "controllers/ - Business logic",
        ],
        "summary": "Request → Middleware → Route Handler → Business Logic → Response",
        "deployment_options": [
            DeploymentOption(
                platform="Railway/Render",
                reason="Good for Node.js API servers",
                steps=["Set environment variables", "Deploy from GitHub"],
            )
        ],
    },
    REACT: {
        "description": "Single-page application built with React",
        "flow_steps": [
            "User Interaction",
            "Event Handler",
            "State Update",
            "Component Re-render",
            "API Calls (if needed)",
            "UI Update",
        ],
        "key_files": [
            "src/App.js - Main component",
            "src/components/ - React components",
            "src/hooks/ - Custom hooks",
            "public/index.html - Entry point",
        ],
        "summary": "User Input → Event Handler → State Change → Re-render → API Call → UI Update",
        "deployment_options": [
            DeploymentOption(
                platform="Netlify",
                reason="Great for static React apps",
                steps=["Build with npm run build", "Deploy build folder"],
            )
        ],
    },
    GENERIC: {
        "description": "General JavaScript application or library",
        "flow_steps": [
            "Entry Point",
            "Module Loading",
            "Function Execution",
            "Data Processing",
            "Output/Export",
        ],
        "key_files": [
            "index.js - Entry point",
            "src/ - Source code",
            "package.json - Configuration",
        ],
        "summary": "Entry Point → Module Import → Function Execution → Data Processing → Output",
        "deployment_options": [
            DeploymentOption(
                platform="GitHub Pages",
                reason="Simple deployment for static sites",
                steps=["Enable GitHub Pages", "Push to gh-pages branch"],
            )
        ],
    },
}


class WorkflowClassifier:
    """Selects one architecture archetype from technology signals."""

    def flags(self, tech_stack: Iterable[TechStackEntry], files: Dict[str, FileAnalysis]) -> Dict[str, bool]:
        names = {entry.name.lower() for entry in tech_stack}
        kinds = {analysis.kind for analysis in files.values()}
        roles = {entry.role for entry in tech_stack}
        return {
            "has_express": "express" in names or "express-server" in kinds,
            "has_react": "react" in names or "react-component" in kinds,
            "has_next": "next.js" in names or "next" in names,
            "has_mongoose": "mongoose" in names or "mongoose-model" in kinds,
            "has_build_tool": "build-tool" in roles,
        }

    def classify(self, tech_stack: List[TechStackEntry], files: Dict[str, FileAnalysis]) -> WorkflowArchetype:
        flags = self.flags(tech_stack, files)
        if flags["has_next"]:
            kind = NEXT
        elif flags["has_express"] and flags["has_react"] and flags["has_mongoose"]:
            kind = MERN
        elif flags["has_express"] and flags["has_mongoose"]:
            kind = EXPRESS_MONGO
        elif flags["has_express"]:
            kind = EXPRESS
        elif flags["has_react"]:
            kind = REACT
        else:
            kind = GENERIC
        return build_archetype(kind, flags=flags)

    def dev_workflow(
        self, manifest: Optional[PackageManifest], lockfiles: Iterable[str] = ()
    ) -> List[DevStep]:
        """Ordered setup steps; numbering follows the steps actually present."""
        manager = detect_node_package_manager(lockfiles)
        scripts = manifest.scripts if manifest is not None else {}

        planned = [("Install Dependencies", build_install_command(manager), "Install all project dependencies")]
        if "dev" in scripts:
            planned.append(
                ("Start Development", build_node_script_command("dev", manager), "Start development server with hot reload")
            )
        elif "start" in scripts:
            planned.append(("Start Application", build_node_script_command("start", manager), "Start the application"))
        if "test" in scripts:
            planned.append(("Run Tests", build_node_script_command("test", manager), "Execute test suite"))
        if "build" in scripts:
            planned.append(("Build for Production", build_node_script_command("build", manager), "Create production build"))

        return [
            DevStep(order=index, action=action, command=command, description=description)
            for index, (action, command, description) in enumerate(planned, start=1)
        ]


def build_archetype(kind: str, *, flags: Optional[Dict[str, bool]] = None) -> WorkflowArchetype:
    template = _ARCHETYPES[kind]
    return WorkflowArchetype(
        kind=kind,
        description=template["description"],
        flow_steps=list(template["flow_steps"]),
        summary=template["summary"],
        key_files=list(template["key_files"]),
        deployment_options=list(template["deployment_options"]),
        flags=dict(flags or {}),
    )


__all__ = [
    "EXPRESS",
    "EXPRESS_MONGO",
    "GENERIC",
    "MERN",
    "NEXT",
    "REACT",
    "WorkflowClassifier",
    "build_archetype",
]
