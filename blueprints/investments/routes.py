from flask import request
from . import investments_bp
from services.investment_service import InvestmentService
from utils.responses import success


@investments_bp.route('', methods=['GET'])
def list_investments():
    result = InvestmentService.view_investments(
        property_id=request.args.get('property_id', type=int),
        investor_id=request.args.get('investor_id', type=int),
        status=request.args.get('status'),
        min_amount=request.args.get('min_amount'),
        max_amount=request.args.get('max_amount'),
        page=request.args.get('page', type=int),
        size=request.args.get('size', type=int),
    )
    result['investments'] = [InvestmentService.to_dict(i) for i in result['investments']]
    return success(result, 'Investments retrieved successfully')


@investments_bp.route('', methods=['POST'])
def create_investment():
    investment = InvestmentService.add_investment(request.get_json(silent=True) or {})
    return success(InvestmentService.to_dict(investment), 'Investment created successfully', 201)


@investments_bp.route('/<int:investment_id>', methods=['PUT'])
def update_investment(investment_id):
    investment = InvestmentService.update_investment(investment_id, request.get_json(silent=True) or {})
    return success(InvestmentService.to_dict(investment), 'Investment updated successfully')


@investments_bp.route('/<int:investment_id>', methods=['DELETE'])
def delete_investment(investment_id):
    InvestmentService.delete_investment(investment_id)
    return success(None, 'Investment deleted successfully')
