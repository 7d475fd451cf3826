import logging
from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from approval_system.models.organization.department import Department
from approval_system.models.auth.user import User
from approval_system.schemas.organization.department import DepartmentCreate, DepartmentUpdate
from approval_system.utils.pagination import paginate
from approval_system.utils.search import contains

logger = logging.getLogger(__name__)


def department_to_dict(dept: Department, parent_name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": dept.id,
        "parent_id": dept.parent_id,
        "parent_name": parent_name,
        "dept_name": dept.dept_name,
        "leader": dept.leader,
        "phone": dept.phone,
        "email": dept.email,
        "order_num": dept.order_num,
        "status": dept.status,
        "created_at": dept.created_at,
    }


class DepartmentService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- Getters ----------
    async def get_department(self, department_id: int) -> Optional[Department]:
        result = await self.session.execute(
            select(Department).where(
                Department.id == department_id,
                Department.is_deleted == False
            )
        )
        return result.scalar_one_or_none()

    async def _name_map(self) -> Dict[int, str]:
        result = await self.session.execute(
            select(Department.id, Department.dept_name).where(Department.is_deleted == False)
        )
        return {dept_id: name for dept_id, name in result.all()}

    async def _children_map(self) -> Dict[int, List[int]]:
        result = await self.session.execute(
            select(Department.id, Department.parent_id).where(Department.is_deleted == False)
        )
        children: Dict[int, List[int]] = {}
        for dept_id, parent_id in result.all():
            children.setdefault(parent_id or 0, []).append(dept_id)
        return children

    async def get_descendant_ids(self, department_id: int) -> List[int]:
        children = await self._children_map()
        found, stack = [], list(children.get(department_id, []))
        while stack:
            current = stack.pop()
            if current in found:
                continue
            found.append(current)
            stack.extend(children.get(current, []))
        return found

    async def _validate_parent(self, parent_id: int, department_id: Optional[int] = None):
        """Parent must exist and must not be the department itself or one of its descendants"""
        if not parent_id:
            return
        if department_id is not None and parent_id == department_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A department cannot be its own parent"
            )
        parent = await self.get_department(parent_id)
        if not parent:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Parent department not found"
            )
        if department_id is not None and parent_id in await self.get_descendant_ids(department_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A department cannot be moved under one of its own sub-departments"
            )

    async def get_department_detail(self, department_id: int) -> Dict[str, Any]:
        dept = await self.get_department(department_id)
        if not dept:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found")
        parent = await self.get_department(dept.parent_id) if dept.parent_id else None
        return department_to_dict(dept, parent.dept_name if parent else None)

    # ---------- Create / Update / Delete ----------
    async def create_department(self, data: DepartmentCreate, created_by: Optional[int] = None) -> Dict[str, Any]:
        try:
            await self._validate_parent(data.parent_id)

            dept = Department(
                parent_id=data.parent_id or 0,
                dept_name=data.dept_name,
                leader=data.leader,
                phone=data.phone,
                email=data.email,
                order_num=data.order_num,
                status=data.status,
                created_by=created_by,
            )
            self.session.add(dept)
            await self.session.commit()
            await self.session.refresh(dept)
            logger.info(f"Department created: {dept.dept_name}")
            return await self.get_department_detail(dept.id)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating department: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error creating department")

    async def update_department(self, department_id: int, data: DepartmentUpdate, updated_by: Optional[int] = None) -> Dict[str, Any]:
        try:
            dept = await self.get_department(department_id)
            if not dept:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found")

            update_data = data.dict(exclude_unset=True)
            if "parent_id" in update_data:
                update_data["parent_id"] = update_data["parent_id"] or 0
                await self._validate_parent(update_data["parent_id"], department_id)

            for field, value in update_data.items():
                setattr(dept, field, value)

            dept.updated_by = updated_by
            await self.session.commit()
            await self.session.refresh(dept)
            logger.info(f"Department updated: {dept.dept_name}")
            return await self.get_department_detail(department_id)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating department {department_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error updating department")

    async def delete_department(self, department_id: int, deleted_by: Optional[int] = None) -> bool:
        try:
            dept = await self.get_department(department_id)
            if not dept:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found")

            child_count = await self.session.scalar(
                select(func.count(Department.id)).where(
                    Department.parent_id == department_id,
                    Department.is_deleted == False
                )
            )
            if child_count:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Cannot delete department. It has sub-departments"
                )

            user_count = await self.session.scalar(
                select(func.count(User.id)).where(
                    User.dept_id == department_id,
                    User.is_deleted == False
                )
            )
            if user_count:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Cannot delete department. It still has users"
                )

            dept.is_deleted = True
            dept.status = 0
            dept.updated_by = deleted_by
            await self.session.commit()
            logger.info(f"Department deleted (soft): {dept.dept_name}")
            return True

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting department {department_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error deleting department")

    # ---------- Listing & Counting ----------
    async def get_departments(
        self,
        page_index: int = 1,
        page_size: int = 10,
        dept_name: Optional[str] = None,
        status_filter: Optional[int] = None,
        parent_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Get departments with pagination"""
        query = select(Department).where(Department.is_deleted == False)
        if dept_name:
            query = query.where(contains(Department.dept_name, dept_name))
        if status_filter is not None:
            query = query.where(Department.status == status_filter)
        if parent_id is not None:
            query = query.where(Department.parent_id == parent_id)
        query = query.order_by(Department.parent_id, Department.order_num, Department.id)

        page = await paginate(self.session, query, page_index, page_size)
        names = await self._name_map()
        page["data"] = [department_to_dict(d, names.get(d.parent_id)) for d in page["data"]]
        return page

    async def get_all_departments(self) -> List[Dict[str, Any]]:
        """Flat list with parent names"""
        result = await self.session.execute(
            select(Department)
            .where(Department.is_deleted == False)
            .order_by(Department.parent_id, Department.order_num, Department.id)
        )
        departments = result.scalars().all()
        names = {d.id: d.dept_name for d in departments}
        return [department_to_dict(d, names.get(d.parent_id)) for d in departments]

    async def get_department_tree(self) -> List[Dict[str, Any]]:
        flat = await self.get_all_departments()
        nodes = {d["id"]: {**d, "children": []} for d in flat}
        roots = []
        for node in nodes.values():
            parent = nodes.get(node["parent_id"])
            if parent is not None:
                parent["children"].append(node)
            else:
                roots.append(node)
        return roots

    async def count_departments(self) -> int:
        return (await self.session.scalar(
            select(func.count(Department.id)).where(Department.is_deleted == False)
        )) or 0
