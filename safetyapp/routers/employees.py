from fastapi import APIRouter, HTTPException, Depends
from typing import Dict, Any
import logging

from ..core.dependencies import get_employee_service
from ..services.employee_service import EMPLOYEE_NOT_FOUND_ERROR, EmployeeService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/employees",
    tags=["Employees"],
)


@router.get("", response_model=Dict[str, Any])
async def list_employees(employee_service: EmployeeService = Depends(get_employee_service)):
    try:
        success, employees, error = await employee_service.list_employees()
        if success:
            return {"success": True, "employees": employees, "count": len(employees)}
        raise HTTPException(status_code=500, detail="Failed to fetch employees")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching employees: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch employees")


@router.get("/{emp_id}", response_model=Dict[str, Any])
async def get_employee(emp_id: str, employee_service: EmployeeService = Depends(get_employee_service)):
    """Employee by ``empId`` (path is percent-decoded, Thai ids included)"""
    try:
        success, employee, error = await employee_service.get_employee(emp_id)
        if success:
            return {"success": True, "employee": employee}
        if error == EMPLOYEE_NOT_FOUND_ERROR:
            raise HTTPException(status_code=404, detail=f"No employee found with ID: {emp_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch employee")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching employee {emp_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch employee")
